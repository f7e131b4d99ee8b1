"""
The commands the presentation layer calls on the store. Each takes plain JSON-style
arguments and returns plain JSON-style values, so they can be called across a process
boundary with `run_command`.
"""

import inspect
from typing import Any, Dict, List, Optional

from studio.commands.command_registry import look_up_command, studio_command
from studio.config.logger import get_logger
from studio.errors import error_kind, InvalidInput, is_fatal, UnexpectedError
from studio.workspaces.workspaces import current_workspace, init_workspace

log = get_logger(__name__)


Payload = Any


def to_payload(value: Any) -> Payload:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    if isinstance(value, dict):
        return {str(k): to_payload(v) for k, v in value.items()}
    if hasattr(value, "to_payload"):
        return value.to_payload()
    raise UnexpectedError(f"Can't convert result to a payload: {type(value).__name__}")


@studio_command
def initialize_workspace() -> Dict[str, Any]:
    """
    Create the workspace with a starter project, unless it already exists.
    """
    return init_workspace(current_workspace().root).to_payload()


@studio_command
def list_projects() -> List[Dict[str, Any]]:
    """
    List all projects.
    """
    return to_payload(current_workspace().projects.list_projects())


@studio_command
def create_project(requested_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a project. Without a name, a placeholder name is used.
    """
    return current_workspace().projects.create_project(requested_name).to_payload()


@studio_command
def rename_project(old_folder_name: str, new_display_name: str) -> Dict[str, Any]:
    """
    Rename a project, moving its folder to match the new name.
    """
    project = current_workspace().projects.rename_project(old_folder_name, new_display_name)
    return project.to_payload()


@studio_command
def delete_project(folder_name: str) -> None:
    """
    Delete a project and all its posts.
    """
    current_workspace().projects.delete_project(folder_name)


@studio_command
def get_project_settings(folder_name: str) -> Dict[str, Any]:
    """
    Show a project's description, intention, and post recipe.
    """
    return current_workspace().projects.read_settings(folder_name).to_payload()


@studio_command
def update_project_settings(
    folder_name: str,
    description: Optional[str] = None,
    intention: Optional[str] = None,
    post_recipe: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Change some of a project's settings.
    """
    settings = current_workspace().projects.update_settings(
        folder_name, description=description, intention=intention, post_recipe=post_recipe
    )
    return settings.to_payload()


@studio_command
def list_posts(project_folder_name: str) -> List[Dict[str, Any]]:
    """
    List the posts in a project, with their titles.
    """
    return to_payload(current_workspace().posts.list_posts(project_folder_name))


@studio_command
def create_post(project_folder_name: str, requested_title: str) -> Dict[str, Any]:
    """
    Create a post in a project.
    """
    return current_workspace().posts.create_post(project_folder_name, requested_title).to_payload()


@studio_command
def read_post(project_folder_name: str, slug: str) -> Dict[str, Any]:
    """
    Read a post's full text.
    """
    return current_workspace().posts.read_post(project_folder_name, slug).to_payload()


@studio_command
def update_post(project_folder_name: str, slug: str, content: str) -> None:
    """
    Replace a post's full text.
    """
    current_workspace().posts.update_post(project_folder_name, slug, content)


@studio_command
def retitle_post(project_folder_name: str, slug: str, new_title: str) -> Dict[str, Any]:
    """
    Set a post's title. Its slug stays the same.
    """
    return current_workspace().posts.retitle_post(project_folder_name, slug, new_title).to_payload()


@studio_command
def delete_post(project_folder_name: str, slug: str) -> None:
    """
    Delete a post.
    """
    current_workspace().posts.delete_post(project_folder_name, slug)


def _bind_args(name: str, args: Dict[str, Any]) -> inspect.BoundArguments:
    command = look_up_command(name)
    if not isinstance(args, dict):
        raise InvalidInput(f"Arguments to `{name}` should be an object, got: {args!r}")
    try:
        return inspect.signature(command).bind(**args)
    except TypeError as e:
        raise InvalidInput(f"Invalid arguments to `{name}`: {e}") from e


def run_command(name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Run a command by name and wrap the outcome:
    `{"ok": true, "result": ...}` or `{"ok": false, "error": {"kind": ..., "message": ...}}`.
    """
    try:
        bound = _bind_args(name, args if args is not None else {})
        result = to_payload(look_up_command(name)(*bound.args, **bound.kwargs))
    except Exception as e:
        if is_fatal(e):
            log.error("Command `%s` failed unexpectedly: %s", name, e, exc_info=True)
        else:
            log.info("Command `%s` failed: %s", name, e)
        return {"ok": False, "error": {"kind": error_kind(e), "message": str(e)}}

    return {"ok": True, "result": result}


## Tests


def _use_workspace(tmp_path, monkeypatch):
    from studio.config.settings import global_settings

    monkeypatch.setattr(global_settings(), "workspace_root", tmp_path / "studio")


def test_run_command_flow(tmp_path, monkeypatch):
    _use_workspace(tmp_path, monkeypatch)

    init = run_command("initialize_workspace")
    assert init["ok"] and init["result"]["created"]
    assert run_command("initialize_workspace")["result"]["created"] is False

    project = run_command("create_project", {"requested_name": "My Project!"})["result"]
    assert project["name"] == "My Project!"
    assert project["folder_name"] == "my-project"

    post = run_command(
        "create_post", {"project_folder_name": "my-project", "requested_title": "Hello World"}
    )["result"]
    assert post["slug"] == "hello-world"

    retitled = run_command(
        "retitle_post",
        {"project_folder_name": "my-project", "slug": "hello-world", "new_title": "Hi"},
    )["result"]
    assert retitled["title"] == "Hi"

    posts = run_command("list_posts", {"project_folder_name": "my-project"})["result"]
    assert posts == [{"filename": "hello-world.md", "slug": "hello-world", "title": "Hi"}]

    renamed = run_command(
        "rename_project", {"old_folder_name": "my-project", "new_display_name": "Renamed"}
    )["result"]
    assert renamed["folder_name"] == "renamed"
    names = [p["folder_name"] for p in run_command("list_projects")["result"]]
    assert names == ["renamed", "welcome"]

    settings = run_command(
        "update_project_settings", {"folder_name": "renamed", "intention": "Daily notes"}
    )["result"]
    assert settings["intention"] == "Daily notes"
    assert run_command("get_project_settings", {"folder_name": "renamed"})["result"] == settings

    deleted = run_command("delete_post", {"project_folder_name": "renamed", "slug": "hello-world"})
    assert deleted == {"ok": True, "result": None}
    assert run_command("delete_project", {"folder_name": "renamed"})["ok"]


def test_run_command_errors(tmp_path, monkeypatch):
    _use_workspace(tmp_path, monkeypatch)
    run_command("initialize_workspace")

    unknown = run_command("no_such_command")
    assert unknown["error"]["kind"] == "InvalidInput"

    bad_args = run_command("read_post", {"project_folder_name": "welcome"})
    assert bad_args["error"]["kind"] == "InvalidInput"

    not_an_object = run_command("read_post", ["welcome"])  # type: ignore
    assert not_an_object["error"]["kind"] == "InvalidInput"

    missing = run_command("delete_post", {"project_folder_name": "welcome", "slug": "nope"})
    assert missing == {
        "ok": False,
        "error": {"kind": "NotFound", "message": "Post not found: `nope` in project `welcome`"},
    }

    escape = run_command("list_posts", {"project_folder_name": "../etc"})
    assert escape["error"]["kind"] == "InvalidName"


def test_run_command_wrong_types(tmp_path, monkeypatch):
    _use_workspace(tmp_path, monkeypatch)
    run_command("initialize_workspace")
    welcome = tmp_path / "studio" / "welcome"
    before = sorted(p.name for p in welcome.iterdir())

    wrong_content = run_command(
        "update_post", {"project_folder_name": "welcome", "slug": "getting-started", "content": 5}
    )
    assert wrong_content["error"]["kind"] == "InvalidInput"

    no_title = run_command(
        "retitle_post",
        {"project_folder_name": "welcome", "slug": "getting-started", "new_title": None},
    )
    assert no_title["error"]["kind"] == "InvalidInput"

    string_recipe = run_command(
        "update_project_settings", {"folder_name": "welcome", "post_recipe": "abc"}
    )
    assert string_recipe["error"]["kind"] == "InvalidInput"

    assert sorted(p.name for p in welcome.iterdir()) == before
    recipe = run_command("get_project_settings", {"folder_name": "welcome"})["result"]
    assert recipe["post_recipe"] == ["Title", "Date", "Related", "Image"]


def test_to_payload():
    import pytest

    from studio.errors import UnexpectedError
    from studio.model.store_model import InitResult

    assert to_payload([InitResult(True, "hi"), None]) == [{"created": True, "message": "hi"}, None]
    with pytest.raises(UnexpectedError):
        to_payload(object())
