"""
Per-project sidecar file (`.project.yml` inside the project directory).

Holds the project's display name, when it differs from the folder name, and the
editable project details. It is only metadata about one directory: the set of
projects and posts always comes from listing the filesystem.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from frontmatter_format import read_yaml_file, write_yaml_file
from ruamel.yaml.error import YAMLError

from studio.config.logger import get_logger
from studio.config.settings import PROJECT_SIDECAR_NAME
from studio.errors import MalformedContent
from studio.model.store_model import ProjectSettings
from studio.util.format_utils import fmt_path
from studio.util.type_utils import check_optional_str, check_str_list

log = get_logger(__name__)

NAME_KEY = "name"


def sidecar_path(project_dir: Path) -> Path:
    return project_dir / PROJECT_SIDECAR_NAME


def read_sidecar(project_dir: Path) -> Dict[str, Any]:
    """
    Read the sidecar as a dict, or an empty dict if there is none. Raises
    `MalformedContent` if it isn't a YAML mapping.
    """
    path = sidecar_path(project_dir)
    if not path.is_file():
        return {}
    try:
        data = read_yaml_file(str(path))
    except YAMLError as e:
        raise MalformedContent(f"Could not parse project settings: {fmt_path(path)}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedContent(
            f"Project settings should be a mapping, got {type(data).__name__}: {fmt_path(path)}"
        )
    return data


def write_sidecar(project_dir: Path, data: Dict[str, Any]) -> None:
    """
    Atomic write of the whole sidecar.
    """
    write_yaml_file(data, str(sidecar_path(project_dir)))


def update_sidecar(project_dir: Path, **changes: Any) -> Dict[str, Any]:
    """
    Read-modify-write of some sidecar keys. Keys set to None are left unchanged.
    """
    data = read_sidecar(project_dir)
    data.update({key: value for key, value in changes.items() if value is not None})
    write_sidecar(project_dir, data)
    return data


def display_name_for(project_dir: Path) -> str:
    """
    The display name recorded for a project, or its folder name. A sidecar that can't
    be read doesn't stop the project from being listed.
    """
    try:
        name = read_sidecar(project_dir).get(NAME_KEY)
    except (MalformedContent, OSError) as e:
        log.warning("Ignoring unreadable project settings: %s", e)
        name = None
    if isinstance(name, str) and name.strip():
        return name
    return project_dir.name


def _str_list(value: Any, path: Path) -> List[str]:
    if not isinstance(value, list):
        raise MalformedContent(f"Post recipe should be a list: {fmt_path(path)}")
    return [str(item) for item in value]


def settings_from(data: Dict[str, Any], project_dir: Path) -> ProjectSettings:
    settings = ProjectSettings()
    if data.get("description") is not None:
        settings.description = str(data["description"])
    if data.get("intention") is not None:
        settings.intention = str(data["intention"])
    if data.get("post_recipe") is not None:
        settings.post_recipe = _str_list(data["post_recipe"], sidecar_path(project_dir))
    return settings


def read_settings(project_dir: Path) -> ProjectSettings:
    return settings_from(read_sidecar(project_dir), project_dir)


def update_settings(
    project_dir: Path,
    description: Optional[str] = None,
    intention: Optional[str] = None,
    post_recipe: Optional[List[str]] = None,
) -> ProjectSettings:
    recipe = check_str_list(post_recipe, "post recipe") if post_recipe is not None else None
    data = update_sidecar(
        project_dir,
        description=check_optional_str(description, "description"),
        intention=check_optional_str(intention, "intention"),
        post_recipe=recipe,
    )
    return settings_from(data, project_dir)


## Tests


def test_sidecar_round_trip(tmp_path: Path):
    assert read_sidecar(tmp_path) == {}
    assert display_name_for(tmp_path) == tmp_path.name
    assert read_settings(tmp_path) == ProjectSettings()

    update_sidecar(tmp_path, name="My Project!")
    assert display_name_for(tmp_path) == "My Project!"

    settings = update_settings(tmp_path, description="About", post_recipe=["Title", "Mood"])
    assert settings.description == "About"
    assert settings.intention == ""
    assert settings.post_recipe == ["Title", "Mood"]

    # Unrelated keys survive updates.
    assert read_sidecar(tmp_path)[NAME_KEY] == "My Project!"
    assert read_settings(tmp_path) == settings


def test_corrupt_sidecar(tmp_path: Path):
    import pytest

    sidecar_path(tmp_path).write_text("- just\n- a list\n")
    with pytest.raises(MalformedContent):
        read_settings(tmp_path)
    assert display_name_for(tmp_path) == tmp_path.name

    sidecar_path(tmp_path).write_text("name: [unclosed\n")
    with pytest.raises(MalformedContent):
        read_sidecar(tmp_path)

    sidecar_path(tmp_path).write_text("post_recipe: not-a-list\n")
    with pytest.raises(MalformedContent):
        read_settings(tmp_path)
