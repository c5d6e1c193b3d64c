"""Typed release configuration.

Defaults reproduce the conventional layout (``main`` promoted into
``delivery`` on ``origin``). A repository can override them with a
``.release.toml`` file holding a ``[release]`` table.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = ".release.toml"

DEFAULT_DEVELOPMENT_BRANCH = "main"
DEFAULT_DELIVERY_BRANCH = "delivery"
DEFAULT_REMOTE = "origin"
DEFAULT_IGNORE_FILE = ".release_ignore"
DEFAULT_COPY_BRANCH = "current-copy"
DEFAULT_MIRROR_BRANCH = "delivery-local"
DEFAULT_DEV_TAG_SUFFIX = "-dev"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Branch names, remote and file conventions for one repository."""

    development_branch: str = DEFAULT_DEVELOPMENT_BRANCH
    delivery_branch: str = DEFAULT_DELIVERY_BRANCH
    remote: str = DEFAULT_REMOTE
    ignore_file: str = DEFAULT_IGNORE_FILE
    copy_branch: str = DEFAULT_COPY_BRANCH
    mirror_branch: str = DEFAULT_MIRROR_BRANCH
    dev_tag_suffix: str = DEFAULT_DEV_TAG_SUFFIX
    sign: bool = True
    managed_files: tuple[str, ...] = ()
    config_file: str = CONFIG_FILE_NAME

    @property
    def transient_branches(self) -> tuple[str, str]:
        return (self.copy_branch, self.mirror_branch)

    @property
    def managed_paths(self) -> tuple[str, ...]:
        """Release tooling files that never ship on the delivery branch."""
        paths: list[str] = []
        for p in (self.ignore_file, self.config_file, *self.managed_files):
            if p not in paths:
                paths.append(p)
        return tuple(paths)

    def with_overrides(
        self, *, remote: str | None = None, sign: bool | None = None
    ) -> ReleaseConfig:
        """Apply command-line overrides on top of file values."""
        out = self
        if remote is not None:
            out = replace(out, remote=remote)
        if sign is not None:
            out = replace(out, sign=sign)
        return out

    @classmethod
    def from_dict(
        cls, data: Mapping[str, object], *, config_file: str = CONFIG_FILE_NAME
    ) -> ReleaseConfig:
        """Create ReleaseConfig from parsed TOML."""
        release: StrDict = get_table(data, "release") or {}
        sign = get_bool(release, "sign")

        return cls(
            development_branch=get_str(release, "development_branch") or DEFAULT_DEVELOPMENT_BRANCH,
            delivery_branch=get_str(release, "delivery_branch") or DEFAULT_DELIVERY_BRANCH,
            remote=get_str(release, "remote") or DEFAULT_REMOTE,
            ignore_file=get_str(release, "ignore_file") or DEFAULT_IGNORE_FILE,
            copy_branch=get_str(release, "copy_branch") or DEFAULT_COPY_BRANCH,
            mirror_branch=get_str(release, "mirror_branch") or DEFAULT_MIRROR_BRANCH,
            dev_tag_suffix=get_str(release, "dev_tag_suffix") or DEFAULT_DEV_TAG_SUFFIX,
            sign=True if sign is None else sign,
            managed_files=get_str_list(release, "managed_files") or (),
            config_file=config_file,
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path, *, repo_root: Path | None = None) -> Result[ReleaseConfig, ConfigError]:
    """Load configuration from a TOML file.

    Args:
        path: Path to the TOML file
        repo_root: Repository root; when the file lives inside it, its
            relative path is recorded as a managed file.

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    config_file = CONFIG_FILE_NAME
    if repo_root is not None:
        try:
            config_file = path.resolve().relative_to(repo_root.resolve()).as_posix()
        except ValueError:
            config_file = CONFIG_FILE_NAME

    try:
        return Ok(ReleaseConfig.from_dict(result.value, config_file=config_file))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(repo_root: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load ``<repo_root>/.release.toml`` if present, defaults otherwise."""
    path = repo_root / CONFIG_FILE_NAME
    if not path.is_file():
        return Ok(ReleaseConfig())
    return load_config(path, repo_root=repo_root)
