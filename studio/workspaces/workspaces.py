from pathlib import Path

from cachetools import cached

from studio import studio_base_path
from studio.config.logger import get_logger
from studio.config.settings import global_settings
from studio.errors import SetupError, StudioError
from studio.file_storage.post_store import PostStore, read_text, write_text_atomic
from studio.file_storage.project_store import ProjectStore, WELCOME_PROJECT_NAME
from studio.file_storage.store_filenames import sanitize
from studio.model.store_model import InitResult
from studio.util.format_utils import fmt_path

log = get_logger(__name__)


TEMPLATES_DIR = studio_base_path / "workspaces" / "templates"

README_NAME = "README.md"

GETTING_STARTED_NAME = "getting-started.md"


class Workspace:
    """
    A workspace root with its project and post stores. Holds no content itself.
    """

    def __init__(self, root: Path):
        self.root = root
        self.projects = ProjectStore(root)
        self.posts = PostStore(root)

    def __str__(self):
        return f"Workspace({fmt_path(self.root)})"

    def initialize(self) -> InitResult:
        return init_workspace(self.root)


def _write_starter_assets(root: Path) -> None:
    write_text_atomic(root / README_NAME, read_text(TEMPLATES_DIR / README_NAME))
    welcome_dir = root / sanitize(WELCOME_PROJECT_NAME)
    write_text_atomic(
        welcome_dir / GETTING_STARTED_NAME, read_text(TEMPLATES_DIR / GETTING_STARTED_NAME)
    )


def init_workspace(root: Path) -> InitResult:
    """
    Set up the workspace at `root` if it doesn't exist yet. An existing workspace is
    left exactly as it is. Any failure is a `SetupError`, which needs the user to
    look at the workspace location (usually its permissions).
    """
    try:
        created = ProjectStore(root).initialize()
        if created:
            _write_starter_assets(root)
    except (StudioError, OSError) as e:
        log.error("Could not set up workspace %s: %s", fmt_path(root), e)
        raise SetupError(
            f"Could not set up workspace at `{fmt_path(root)}` "
            f"(check permissions on that location): {e}"
        ) from e

    if created:
        message = f"Welcome to Studio! Your new workspace has been created at: {fmt_path(root)}"
    else:
        message = (
            f"Studio workspace found at: {fmt_path(root)}. "
            "Your existing setup has been preserved."
        )
    return InitResult(created=created, message=message)


@cached(cache={})
def workspace_for(root: Path) -> Workspace:
    return Workspace(root)


def current_workspace() -> Workspace:
    """
    The workspace at the configured root.
    """
    return workspace_for(global_settings().workspace_root)


## Tests


def test_init_workspace(tmp_path: Path):
    root = tmp_path / "Documents" / "studio"
    result = init_workspace(root)
    assert result.created
    assert (root / README_NAME).read_text().startswith("# Studio")

    ws = Workspace(root)
    projects = ws.projects.list_projects()
    assert [(p.display_name, p.folder_name) for p in projects] == [("Welcome", "welcome")]
    posts = ws.posts.list_posts("welcome")
    assert [(p.slug, p.title) for p in posts] == [("getting-started", "Getting Started")]

    (root / README_NAME).write_text("my own notes")
    again = ws.initialize()
    assert not again.created
    assert "preserved" in again.message
    assert (root / README_NAME).read_text() == "my own notes"


def test_init_workspace_failure(tmp_path: Path):
    import pytest

    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(SetupError):
        init_workspace(blocker / "studio")


def test_current_workspace(tmp_path: Path):
    from studio.config.settings import update_global_settings

    with update_global_settings() as settings:
        old_root = settings.workspace_root
        settings.workspace_root = tmp_path
    try:
        ws = current_workspace()
        assert ws.root == tmp_path
        assert current_workspace() is ws
    finally:
        with update_global_settings() as settings:
            settings.workspace_root = old_root
