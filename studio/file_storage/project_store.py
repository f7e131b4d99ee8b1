import os
import shutil
from pathlib import Path
from typing import List, Optional, Set

from studio.config.logger import get_logger
from studio.config.settings import DEFAULT_PROJECT_NAME
from studio.config.text_styles import EMOJI_SAVED
from studio.errors import (
    CreateFailed,
    DeleteFailed,
    InvalidInput,
    MalformedContent,
    NotFound,
    RenameFailed,
    WriteFailed,
)
from studio.file_storage import project_settings
from studio.file_storage.project_settings import display_name_for, sidecar_path
from studio.file_storage.store_filenames import check_identifier, sanitize, skippable_file
from studio.model.store_model import Project, ProjectSettings
from studio.util.format_utils import fmt_path
from studio.util.log_calls import log_calls
from studio.util.type_utils import check_optional_str, check_str
from studio.util.uniquifier import uniquify

log = get_logger(__name__)


WELCOME_PROJECT_NAME = "Welcome"


def placeholder_name(existing_names: Set[str], base: str = DEFAULT_PROJECT_NAME) -> str:
    """
    A display name for a new project nobody named yet: "Untitled Project", then
    "Untitled Project 2", "Untitled Project 3", and so on.
    """
    if base not in existing_names:
        return base
    n = 2
    while f"{base} {n}" in existing_names:
        n += 1
    return f"{base} {n}"


class ProjectStore:
    """
    The project directories directly under a workspace root. The folder name is a
    project's identity; its display name lives in an optional sidecar file.
    """

    def __init__(self, root: Path):
        self.root = root

    def __str__(self):
        return f"ProjectStore({fmt_path(self.root)})"

    def project_dir(self, folder_name: str) -> Path:
        return self.root / check_identifier(folder_name, "project folder name")

    def _existing_project_dir(self, folder_name: str) -> Path:
        project_dir = self.project_dir(folder_name)
        if not project_dir.is_dir():
            raise NotFound(f"Project not found: `{folder_name}`")
        return project_dir

    def _project(self, project_dir: Path) -> Project:
        return Project(
            display_name=display_name_for(project_dir),
            folder_name=project_dir.name,
            path=project_dir.absolute(),
        )

    def _folder_names(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.root.iterdir()
            if not skippable_file(entry.name) and entry.is_dir()
        )

    def _taken_names(self) -> Set[str]:
        # Plain files count too, since a directory can't be created over one.
        if not self.root.is_dir():
            return set()
        return {entry.name for entry in self.root.iterdir()}

    def _record_display_name(self, project_dir: Path, display_name: str) -> None:
        # No sidecar is needed while the name matches the folder.
        if display_name != project_dir.name or sidecar_path(project_dir).exists():
            project_settings.update_sidecar(project_dir, name=display_name)

    @log_calls(level="debug")
    def initialize(self) -> bool:
        """
        Create the workspace root with a Welcome project, unless the root already exists.
        An existing root is never touched. Returns whether it was created.
        """
        try:
            self.root.mkdir(parents=True)
        except FileExistsError:
            log.info("Workspace already exists: %s", fmt_path(self.root))
            return False
        except OSError as e:
            log.error("Could not create workspace %s: %s", fmt_path(self.root), e)
            raise CreateFailed(f"Could not create workspace `{fmt_path(self.root)}`: {e}") from e

        self.create_project(WELCOME_PROJECT_NAME)
        log.message("%s Created workspace: %s", EMOJI_SAVED, fmt_path(self.root))
        return True

    def list_projects(self) -> List[Project]:
        """
        Every project in the workspace, sorted by folder name. A missing root has no projects.
        """
        return [self._project(self.root / name) for name in self._folder_names()]

    def get_project(self, folder_name: str) -> Project:
        return self._project(self._existing_project_dir(folder_name))

    @log_calls(level="debug")
    def create_project(self, requested_name: Optional[str] = None) -> Project:
        """
        Create an empty project directory. With no name, a placeholder name is picked
        that no other project is using.
        """
        name = (check_optional_str(requested_name, "project name") or "").strip()
        if not name:
            name = placeholder_name({p.display_name for p in self.list_projects()})

        try:
            existing = self._taken_names()
        except OSError as e:
            log.error("Could not list workspace to create project: %s", e)
            raise CreateFailed(f"Could not create project `{name}`: {e}") from e
        folder_name = uniquify(sanitize(name), existing)
        project_dir = self.root / folder_name

        try:
            project_dir.mkdir()
        except OSError as e:
            log.error("Could not create project directory %s: %s", fmt_path(project_dir), e)
            raise CreateFailed(f"Could not create project `{name}`: {e}") from e

        try:
            self._record_display_name(project_dir, name)
        except OSError as e:
            log.error("Could not save name of new project %s: %s", folder_name, e)
            shutil.rmtree(project_dir, ignore_errors=True)
            raise CreateFailed(f"Could not create project `{name}`: {e}") from e

        log.message("%s Created project: %s (%s)", EMOJI_SAVED, name, folder_name)
        return Project(display_name=name, folder_name=folder_name, path=project_dir.absolute())

    @log_calls(level="debug")
    def rename_project(self, old_folder_name: str, new_display_name: str) -> Project:
        """
        Give a project a new display name and move its directory to the matching folder
        name. The move is a single rename, so the posts either all move or all stay.
        If the new name can't be recorded, the directory is moved back.
        """
        old_dir = self._existing_project_dir(old_folder_name)
        name = check_str(new_display_name, "project name").strip()
        if not name:
            raise InvalidInput("A new project name is required")

        existing = self._taken_names() - {old_folder_name}
        new_folder_name = uniquify(sanitize(name), existing)
        new_dir = self.root / new_folder_name

        if new_folder_name == old_folder_name:
            try:
                self._record_display_name(old_dir, name)
            except (OSError, MalformedContent) as e:
                log.error("Could not save new name of project %s: %s", old_folder_name, e)
                raise RenameFailed(f"Could not rename project `{old_folder_name}`: {e}") from e
            log.message("%s Renamed project: %s", EMOJI_SAVED, name)
            return self._project(old_dir)

        if new_dir.exists():
            log.error("Rename destination appeared unexpectedly: %s", fmt_path(new_dir))
            raise RenameFailed(
                f"Could not rename project `{old_folder_name}`: "
                f"`{new_folder_name}` already exists"
            )

        try:
            os.rename(old_dir, new_dir)
        except OSError as e:
            log.error("Could not rename %s to %s: %s", old_folder_name, new_folder_name, e)
            raise RenameFailed(f"Could not rename project `{old_folder_name}`: {e}") from e

        try:
            self._record_display_name(new_dir, name)
        except (OSError, MalformedContent) as e:
            log.error("Could not save new name of project %s, moving it back: %s", name, e)
            try:
                os.rename(new_dir, old_dir)
            except OSError as rollback_error:
                log.error(
                    "Could not move project back to %s, it is now at %s: %s",
                    old_folder_name,
                    new_folder_name,
                    rollback_error,
                )
            raise RenameFailed(f"Could not rename project `{old_folder_name}`: {e}") from e

        log.message(
            "%s Renamed project: %s -> %s (%s)", EMOJI_SAVED, old_folder_name, new_folder_name, name
        )
        return self._project(new_dir)

    @log_calls(level="debug")
    def delete_project(self, folder_name: str) -> None:
        """
        Delete a project directory and all its posts.
        """
        project_dir = self._existing_project_dir(folder_name)
        try:
            shutil.rmtree(project_dir)
        except FileNotFoundError as e:
            raise NotFound(f"Project not found: `{folder_name}`") from e
        except OSError as e:
            log.error("Could not delete project %s: %s", folder_name, e)
            raise DeleteFailed(f"Could not delete project `{folder_name}`: {e}") from e
        log.message("Deleted project: %s", folder_name)

    def read_settings(self, folder_name: str) -> ProjectSettings:
        project_dir = self._existing_project_dir(folder_name)
        return project_settings.read_settings(project_dir)

    @log_calls(level="debug")
    def update_settings(
        self,
        folder_name: str,
        description: Optional[str] = None,
        intention: Optional[str] = None,
        post_recipe: Optional[List[str]] = None,
    ) -> ProjectSettings:
        """
        Change some of a project's settings. Settings left as None keep their values.
        """
        project_dir = self._existing_project_dir(folder_name)
        try:
            settings = project_settings.update_settings(
                project_dir, description=description, intention=intention, post_recipe=post_recipe
            )
        except OSError as e:
            log.error("Could not save settings of project %s: %s", folder_name, e)
            raise WriteFailed(f"Could not save settings of project `{folder_name}`: {e}") from e
        log.info("%s Saved settings: %s", EMOJI_SAVED, folder_name)
        return settings


## Tests


def test_initialize(tmp_path: Path):
    root = tmp_path / "ws"
    store = ProjectStore(root)
    assert store.list_projects() == []

    assert store.initialize() is True
    projects = store.list_projects()
    assert [(p.display_name, p.folder_name) for p in projects] == [("Welcome", "welcome")]

    (root / "welcome" / "mine.md").write_text("# Mine\n")
    assert store.initialize() is False
    assert (root / "welcome" / "mine.md").read_text() == "# Mine\n"


def test_create_projects(tmp_path: Path):
    store = ProjectStore(tmp_path)
    first = store.create_project("My Project!")
    second = store.create_project("My Project!")
    assert first.folder_name == "my-project"
    assert second.folder_name == "my-project-1"
    assert second.display_name == "My Project!"
    assert second.path == (tmp_path / "my-project-1").absolute()

    assert [p.folder_name for p in store.list_projects()] == ["my-project", "my-project-1"]
    assert [p.display_name for p in store.list_projects()] == ["My Project!", "My Project!"]

    plain = store.create_project("plain")
    assert not sidecar_path(plain.path).exists()
    assert store.get_project("plain").display_name == "plain"


def test_create_placeholder_projects(tmp_path: Path):
    store = ProjectStore(tmp_path)
    assert store.create_project().display_name == "Untitled Project"
    second = store.create_project("  ")
    assert second.display_name == "Untitled Project 2"
    assert second.folder_name == "untitled-project-2"
    assert placeholder_name({"Untitled Project", "Untitled Project 2"}) == "Untitled Project 3"


def test_list_skips_files_and_hidden(tmp_path: Path):
    store = ProjectStore(tmp_path)
    store.create_project("alpha")
    (tmp_path / "README.md").write_text("readme")
    (tmp_path / ".git").mkdir()
    assert [p.folder_name for p in store.list_projects()] == ["alpha"]


def test_rename_project(tmp_path: Path):
    import pytest

    store = ProjectStore(tmp_path)
    store.create_project("alpha")
    post = tmp_path / "alpha" / "post.md"
    post_bytes = '---\r\ntitle: "Post"\r\n---\r\nBody ✓\r\n'.encode("utf-8")
    post.write_bytes(post_bytes)

    renamed = store.rename_project("alpha", "Alpha 2.0")
    assert renamed.folder_name == "alpha-2-0"
    assert renamed.display_name == "Alpha 2.0"
    assert (tmp_path / "alpha-2-0" / "post.md").read_bytes() == post_bytes
    assert "alpha" not in [p.folder_name for p in store.list_projects()]

    # Same folder name: only the display name changes.
    again = store.rename_project("alpha-2-0", "ALPHA 2.0")
    assert again.folder_name == "alpha-2-0"
    assert again.display_name == "ALPHA 2.0"

    store.create_project("beta")
    clash = store.rename_project("beta", "Alpha 2.0")
    assert clash.folder_name == "alpha-2-0-1"

    with pytest.raises(NotFound):
        store.rename_project("missing", "Whatever")
    with pytest.raises(InvalidInput):
        store.rename_project("alpha-2-0", " ")


def test_delete_project(tmp_path: Path):
    import pytest

    store = ProjectStore(tmp_path)
    store.create_project("doomed")
    (tmp_path / "doomed" / "post.md").write_text("text")
    store.delete_project("doomed")
    assert store.list_projects() == []
    with pytest.raises(NotFound):
        store.delete_project("doomed")


def test_project_settings(tmp_path: Path):
    import pytest

    store = ProjectStore(tmp_path)
    store.create_project("Notes")
    assert store.read_settings("notes") == ProjectSettings()

    settings = store.update_settings("notes", intention="Write daily", post_recipe=["Title"])
    assert settings.intention == "Write daily"
    assert store.read_settings("notes").post_recipe == ["Title"]
    assert store.get_project("notes").display_name == "Notes"

    with pytest.raises(NotFound):
        store.read_settings("missing")


def test_rename_rollback(tmp_path: Path):
    import pytest

    store = ProjectStore(tmp_path)
    store.create_project("alpha")
    post_bytes = b"# Post\r\nBody\r\n"
    (tmp_path / "alpha" / "post.md").write_bytes(post_bytes)
    # A directory where the sidecar should go makes saving the new name fail.
    sidecar_path(tmp_path / "alpha").mkdir()

    with pytest.raises(RenameFailed) as exc_info:
        store.rename_project("alpha", "Alpha 2.0")
    assert isinstance(exc_info.value.__cause__, OSError)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["alpha"]
    assert (tmp_path / "alpha" / "post.md").read_bytes() == post_bytes
    assert [p.folder_name for p in store.list_projects()] == ["alpha"]


def test_project_storage_errors(tmp_path: Path, monkeypatch):
    import pytest

    store = ProjectStore(tmp_path)
    store.create_project("alpha")

    def fail(*args, **kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr(shutil, "rmtree", fail)
    with pytest.raises(DeleteFailed):
        store.delete_project("alpha")

    monkeypatch.setattr(project_settings, "write_yaml_file", fail)
    with pytest.raises(WriteFailed):
        store.update_settings("alpha", description="New")

    monkeypatch.undo()
    assert store.read_settings("alpha") == ProjectSettings()


def test_project_bad_arguments(tmp_path: Path):
    import pytest

    store = ProjectStore(tmp_path)
    store.create_project("alpha")
    with pytest.raises(InvalidInput):
        store.rename_project("alpha", None)  # type: ignore
    with pytest.raises(InvalidInput):
        store.create_project(42)  # type: ignore
    with pytest.raises(InvalidInput):
        store.update_settings("alpha", post_recipe="abc")  # type: ignore
    with pytest.raises(InvalidInput):
        store.update_settings("alpha", description=["x"])  # type: ignore
    assert store.read_settings("alpha") == ProjectSettings()
    assert [p.folder_name for p in store.list_projects()] == ["alpha"]
