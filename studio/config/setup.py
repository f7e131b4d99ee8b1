from pathlib import Path

from cachetools import cached
from dotenv import find_dotenv, load_dotenv

from studio.config.logger import logging_setup
from studio.config.settings import default_workspace_root, update_global_settings


@cached(cache={})
def setup():
    """
    One-time setup of environment, workspace location, and logging. Idempotent.
    """

    env_setup()

    logging_setup()


def env_setup() -> str | None:
    """
    Load a `.env` file if there is one (searching from the working directory up), then
    re-resolve the workspace root, since it may be set there.
    """
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)

    with update_global_settings() as settings:
        settings.workspace_root = default_workspace_root()

    return dotenv_path


## Tests


def test_env_setup_reads_dotenv(tmp_path: Path, monkeypatch):
    from studio.config.settings import global_settings, WORKSPACE_ENV_VAR

    monkeypatch.delenv(WORKSPACE_ENV_VAR, raising=False)
    (tmp_path / ".env").write_text(f"{WORKSPACE_ENV_VAR}={tmp_path / 'ws'}\n")
    monkeypatch.chdir(tmp_path)

    old_root = global_settings().workspace_root
    try:
        assert Path(env_setup()).resolve() == (tmp_path / ".env").resolve()
        assert global_settings().workspace_root == tmp_path / "ws"
    finally:
        monkeypatch.delenv(WORKSPACE_ENV_VAR, raising=False)
        with update_global_settings() as settings:
            settings.workspace_root = old_root
