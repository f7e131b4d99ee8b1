from pathlib import Path
from typing import List

from strif import atomic_output_file

from studio.config.logger import get_logger
from studio.config.settings import DEFAULT_POST_TITLE, POST_EXT
from studio.config.text_styles import EMOJI_SAVED
from studio.errors import CreateFailed, DeleteFailed, InvalidInput, NotFound, WriteFailed
from studio.file_formats.frontmatter_format import extract_title, with_title
from studio.file_storage.store_filenames import (
    check_identifier,
    join_suffix,
    sanitize,
    skippable_file,
    split_suffix,
)
from studio.model.store_model import Post, PostSummary
from studio.util.format_utils import fmt_path
from studio.util.log_calls import log_calls
from studio.util.type_utils import check_optional_str, check_str
from studio.util.uniquifier import uniquify

log = get_logger(__name__)


def read_text(path: Path) -> str:
    # newline="" so line endings come back exactly as stored.
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text_atomic(path: Path, content: str) -> None:
    """
    Write via a temporary file that is renamed into place. A failed write removes the
    temporary file and leaves any existing file unchanged.
    """
    with atomic_output_file(path) as temp_path:
        try:
            with open(temp_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise


class PostStore:
    """
    Posts inside the project directories of a workspace. Each post is one
    `<slug>.md` file and every operation goes back to the filesystem.
    """

    def __init__(self, root: Path):
        self.root = root

    def __str__(self):
        return f"PostStore({fmt_path(self.root)})"

    def project_dir(self, folder_name: str) -> Path:
        return self.root / check_identifier(folder_name, "project folder name")

    def post_path(self, folder_name: str, slug: str) -> Path:
        filename = join_suffix(check_identifier(slug, "post slug"), POST_EXT)
        return self.project_dir(folder_name) / filename

    def _existing_project_dir(self, folder_name: str) -> Path:
        project_dir = self.project_dir(folder_name)
        if not project_dir.is_dir():
            raise NotFound(f"Project not found: `{folder_name}`")
        return project_dir

    def _existing_post_path(self, folder_name: str, slug: str) -> Path:
        path = self.post_path(folder_name, slug)
        if not path.is_file():
            raise NotFound(f"Post not found: `{slug}` in project `{folder_name}`")
        return path

    def _slugs(self, project_dir: Path, files_only: bool = True) -> List[str]:
        """
        Slugs of the posts in a project. With `files_only=False`, anything else named
        like a post counts too, since a post can't be written over it.
        """
        slugs = []
        for entry in project_dir.iterdir():
            if skippable_file(entry.name) or (files_only and not entry.is_file()):
                continue
            slug = split_suffix(entry.name, POST_EXT)
            if slug:
                slugs.append(slug)
        return sorted(slugs)

    def _title_of(self, path: Path) -> str:
        try:
            return extract_title(read_text(path))
        except (OSError, UnicodeDecodeError) as e:
            log.warning("Could not read post, listing with default title: %s: %s", path.name, e)
            return DEFAULT_POST_TITLE

    def list_posts(self, folder_name: str) -> List[PostSummary]:
        """
        Every post in the project, sorted by filename.
        """
        project_dir = self._existing_project_dir(folder_name)
        summaries = []
        for slug in self._slugs(project_dir):
            filename = join_suffix(slug, POST_EXT)
            title = self._title_of(project_dir / filename)
            summaries.append(PostSummary(filename=filename, slug=slug, title=title))
        return summaries

    @log_calls(level="debug")
    def create_post(self, folder_name: str, requested_title: str) -> Post:
        """
        Create a post whose slug comes from the title, made unique within the project.
        The new file holds just a frontmatter block with the title and today's date.
        """
        title = (check_optional_str(requested_title, "post title") or "").strip()
        title = title or DEFAULT_POST_TITLE

        project_dir = self.project_dir(folder_name)
        try:
            existing = set(self._slugs(project_dir, files_only=False))
        except OSError as e:
            log.error("Could not list project `%s` to create a post: %s", folder_name, e)
            raise CreateFailed(f"Could not create post in project `{folder_name}`: {e}") from e

        slug = uniquify(sanitize(title), existing)
        filename = join_suffix(slug, POST_EXT)
        content = with_title("", title)
        try:
            write_text_atomic(project_dir / filename, content)
        except UnicodeEncodeError as e:
            raise InvalidInput(f"Post title can't be saved as UTF-8: {e}") from e
        except OSError as e:
            log.error("Could not write new post %s: %s", filename, e)
            raise CreateFailed(f"Could not create post `{filename}`: {e}") from e

        log.message("%s Created post: %s/%s", EMOJI_SAVED, folder_name, filename)
        return Post(filename=filename, slug=slug, title=extract_title(content), content=content)

    def read_post(self, folder_name: str, slug: str) -> Post:
        path = self._existing_post_path(folder_name, slug)
        try:
            content = read_text(path)
        except FileNotFoundError as e:
            raise NotFound(f"Post not found: `{slug}` in project `{folder_name}`") from e
        return Post(filename=path.name, slug=slug, title=extract_title(content), content=content)

    @log_calls(level="debug", show_args=False)
    def update_post(self, folder_name: str, slug: str, content: str) -> None:
        """
        Replace the whole text of a post. The text is written exactly as given.
        """
        check_str(content, "post content")
        path = self._existing_post_path(folder_name, slug)
        try:
            write_text_atomic(path, content)
        except UnicodeEncodeError as e:
            raise InvalidInput(f"Post content can't be saved as UTF-8: {e}") from e
        except OSError as e:
            log.error("Could not save post %s: %s", path.name, e)
            raise WriteFailed(f"Could not save post `{path.name}`: {e}") from e
        log.info("%s Saved post: %s/%s", EMOJI_SAVED, folder_name, path.name)

    @log_calls(level="debug")
    def retitle_post(self, folder_name: str, slug: str, new_title: str) -> Post:
        """
        Set the title in a post's frontmatter, leaving the rest of the text alone. The
        slug and filename don't change.
        """
        check_str(new_title, "post title")
        post = self.read_post(folder_name, slug)
        content = with_title(post.content, new_title)
        if content != post.content:
            self.update_post(folder_name, slug, content)
        return Post(
            filename=post.filename, slug=slug, title=extract_title(content), content=content
        )

    @log_calls(level="debug")
    def delete_post(self, folder_name: str, slug: str) -> None:
        path = self._existing_post_path(folder_name, slug)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise NotFound(f"Post not found: `{slug}` in project `{folder_name}`") from e
        except OSError as e:
            log.error("Could not delete post %s: %s", path.name, e)
            raise DeleteFailed(f"Could not delete post `{path.name}`: {e}") from e
        log.message("Deleted post: %s/%s", folder_name, path.name)


## Tests


def _store_with_project(tmp_path: Path, folder_name: str = "alpha") -> PostStore:
    (tmp_path / folder_name).mkdir()
    return PostStore(tmp_path)


def test_create_and_list_posts(tmp_path: Path):
    store = _store_with_project(tmp_path)
    assert store.list_posts("alpha") == []

    first = store.create_post("alpha", "Hello World")
    second = store.create_post("alpha", "Hello World")
    assert first.slug == "hello-world"
    assert second.slug == "hello-world-1"
    assert second.filename == "hello-world-1.md"
    assert first.title == "Hello World"
    assert first.content.startswith('---\ntitle: "Hello World"\ndate: ')

    summaries = store.list_posts("alpha")
    assert [s.slug for s in summaries] == ["hello-world", "hello-world-1"]
    assert all(s.title == "Hello World" for s in summaries)


def test_create_post_untitled(tmp_path: Path):
    store = _store_with_project(tmp_path)
    post = store.create_post("alpha", "   ")
    assert post.slug == "untitled-post"
    assert post.title == DEFAULT_POST_TITLE


def test_list_ignores_other_files(tmp_path: Path):
    store = _store_with_project(tmp_path)
    project_dir = tmp_path / "alpha"
    (project_dir / "notes.txt").write_text("not a post")
    (project_dir / ".project.yml").write_text("name: Alpha\n")
    (project_dir / "sub.md").mkdir()
    (project_dir / "My Notes.md").write_text("# By Hand\n")

    summaries = store.list_posts("alpha")
    assert [(s.slug, s.title) for s in summaries] == [("My Notes", "By Hand")]
    assert store.read_post("alpha", "My Notes").title == "By Hand"


def test_read_update_round_trip(tmp_path: Path):
    store = _store_with_project(tmp_path)
    post = store.create_post("alpha", "Draft")

    content = '---\r\ntitle: "Final"\r\nlayout: post\r\n---\r\n\r\nBody ✓\r\n'
    store.update_post("alpha", post.slug, content)
    again = store.read_post("alpha", post.slug)
    assert again.content == content
    assert again.title == "Final"
    assert again.slug == "draft"
    assert (tmp_path / "alpha" / "draft.md").read_bytes() == content.encode("utf-8")


def test_retitle_post(tmp_path: Path):
    store = _store_with_project(tmp_path)
    post = store.create_post("alpha", "Old Title")
    store.update_post("alpha", post.slug, post.content + "Body\n")

    renamed = store.retitle_post("alpha", post.slug, "New Title")
    assert renamed.slug == "old-title"
    assert renamed.title == "New Title"
    assert renamed.content.endswith("Body\n")
    assert store.read_post("alpha", "old-title").title == "New Title"


def test_missing_things(tmp_path: Path):
    import pytest

    from studio.errors import InvalidName

    store = _store_with_project(tmp_path)
    with pytest.raises(NotFound):
        store.list_posts("missing")
    with pytest.raises(CreateFailed):
        store.create_post("missing", "Hello")
    with pytest.raises(NotFound):
        store.read_post("alpha", "nope")
    with pytest.raises(NotFound):
        store.update_post("alpha", "nope", "text")
    with pytest.raises(InvalidName):
        store.read_post("alpha", "../alpha")
    with pytest.raises(InvalidName):
        store.list_posts("..")


def test_delete_post(tmp_path: Path):
    import pytest

    store = _store_with_project(tmp_path)
    post = store.create_post("alpha", "Doomed")
    store.delete_post("alpha", post.slug)
    assert store.list_posts("alpha") == []
    assert (tmp_path / "alpha").is_dir()

    with pytest.raises(NotFound):
        store.delete_post("alpha", post.slug)


def test_bad_arguments(tmp_path: Path):
    import pytest

    store = _store_with_project(tmp_path)
    post = store.create_post("alpha", "Keep Me")
    with pytest.raises(InvalidInput):
        store.update_post("alpha", post.slug, 5)  # type: ignore
    with pytest.raises(InvalidInput):
        store.retitle_post("alpha", post.slug, None)  # type: ignore
    with pytest.raises(InvalidInput):
        store.create_post("alpha", ["Not", "a", "title"])  # type: ignore
    with pytest.raises(InvalidInput):
        store.update_post("alpha", post.slug, "bad \ud800 surrogate")

    assert store.read_post("alpha", post.slug).content == post.content
    assert sorted(p.name for p in (tmp_path / "alpha").iterdir()) == ["keep-me.md"]


def test_failed_write_leaves_no_temp_file(tmp_path: Path):
    import pytest

    path = tmp_path / "post.md"
    path.write_text("original")
    with pytest.raises(UnicodeEncodeError):
        write_text_atomic(path, "\ud800")
    assert [p.name for p in tmp_path.iterdir()] == ["post.md"]
    assert path.read_text() == "original"


def test_create_post_skips_names_taken_by_directories(tmp_path: Path):
    store = _store_with_project(tmp_path)
    (tmp_path / "alpha" / "hello-world.md").mkdir()
    post = store.create_post("alpha", "Hello World")
    assert post.slug == "hello-world-1"
    assert [s.slug for s in store.list_posts("alpha")] == ["hello-world-1"]


def test_storage_errors(tmp_path: Path, monkeypatch):
    import pytest

    store = _store_with_project(tmp_path)
    post = store.create_post("alpha", "Stuck")

    def fail(*args, **kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr("studio.file_storage.post_store.atomic_output_file", fail)
    with pytest.raises(WriteFailed) as exc_info:
        store.update_post("alpha", post.slug, "new text")
    assert isinstance(exc_info.value.__cause__, PermissionError)
    with pytest.raises(CreateFailed):
        store.create_post("alpha", "Another")

    monkeypatch.setattr(Path, "unlink", fail)
    with pytest.raises(DeleteFailed):
        store.delete_post("alpha", post.slug)

    monkeypatch.undo()
    assert store.read_post("alpha", post.slug).content == post.content
