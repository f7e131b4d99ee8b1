"""
The data model for projects and posts as seen by callers of the store.

None of these objects is authoritative: each is a snapshot of what was on disk
when it was read, and is rebuilt on every list or read.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from studio.config.settings import DEFAULT_POST_RECIPE


@dataclass(frozen=True)
class Project:
    """
    A project directory. `folder_name` is the primary key; `display_name` is the label
    the user chose, which may differ (and need not be unique).
    """

    display_name: str
    folder_name: str
    path: Path

    def to_payload(self) -> Dict[str, Any]:
        return {"name": self.display_name, "folder_name": self.folder_name, "path": str(self.path)}


@dataclass(frozen=True)
class PostSummary:
    """
    A post as listed, without its content.
    """

    filename: str
    slug: str
    title: str

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Post:
    """
    A post with its full raw text. The title is read from the text; the slug was fixed
    when the post was created and doesn't follow later title changes.
    """

    filename: str
    slug: str
    title: str
    content: str

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProjectSettings:
    """
    Editable project details kept in the project's sidecar file.
    """

    description: str = ""
    intention: str = ""
    post_recipe: List[str] = field(default_factory=lambda: list(DEFAULT_POST_RECIPE))

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class InitResult:
    created: bool
    message: str

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


## Tests


def test_payloads():
    project = Project("My Project!", "my-project", Path("/ws/my-project"))
    assert project.to_payload() == {
        "name": "My Project!",
        "folder_name": "my-project",
        "path": "/ws/my-project",
    }

    post = Post("hello-world.md", "hello-world", "Hello World", "content")
    summary = PostSummary(post.filename, post.slug, post.title)
    assert summary.to_payload() == {
        "filename": "hello-world.md",
        "slug": "hello-world",
        "title": "Hello World",
    }
    assert post.to_payload()["content"] == "content"

    settings = ProjectSettings()
    settings.post_recipe.append("Extra")
    assert ProjectSettings().post_recipe == DEFAULT_POST_RECIPE
