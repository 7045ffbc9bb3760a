from __future__ import annotations

import importlib.util
import logging
import re
import sys
import tarfile
import tempfile
import uuid
import zipfile
from importlib import import_module
from pathlib import Path
from types import ModuleType
from typing import Dict, List, Optional

from .errors import ModuleLoadError, ModuleNotFoundError

logger = logging.getLogger(__name__)

TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar")
ZIP_SUFFIXES = (".zip", ".whl")


def _is_archive(path: Path) -> bool:
    return path.is_file() and path.name.endswith(TAR_SUFFIXES + ZIP_SUFFIXES)


def _unpack(archive: Path, dest: Path) -> None:
    if archive.name.endswith(TAR_SUFFIXES):
        with tarfile.open(archive) as tar:
            tar.extractall(dest, filter="data")
    else:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)


def _entry_point(root: Path) -> Optional[Path]:
    """Find the importable library inside an unpacked archive.

    Archives may wrap their contents in a single `package/` directory. The
    library is then either the root itself (it has an `__init__.py`), or its
    only top-level package, or its only top-level module.
    """
    wrapped = root / "package"
    if wrapped.is_dir():
        root = wrapped
    if (root / "__init__.py").is_file():
        return root

    packages = [p for p in root.iterdir() if p.is_dir() and (p / "__init__.py").is_file()]
    if len(packages) == 1:
        return packages[0]
    modules = [p for p in root.iterdir() if p.is_file() and p.suffix == ".py"]
    if not packages and len(modules) == 1:
        return modules[0]
    return None


class ModuleRegistry:
    """Loads type libraries by symbolic name and keeps them for the kernel's life."""

    def __init__(self) -> None:
        self._modules: Dict[str, ModuleType] = {}
        self._workdirs: List[tempfile.TemporaryDirectory] = []

    def load(self, name: str, locator: str) -> None:
        """Load `locator` under `name`.

        Idempotent by name: once `name` is registered, later calls return
        without consulting their locator at all.
        """
        if name in self._modules:
            logger.debug("module %s already loaded, ignoring %s", name, locator)
            return

        module = self._import(name, locator)
        self._modules[name] = module
        logger.debug("loaded module %s from %s as %s", name, locator, module.__name__)

    def get(self, name: str) -> ModuleType:
        try:
            return self._modules[name]
        except KeyError:
            raise ModuleNotFoundError(f"Module {name} not found. Was it loaded?") from None

    def names(self) -> List[str]:
        return list(self._modules)

    def modules(self) -> Dict[str, ModuleType]:
        return dict(self._modules)

    def close(self) -> None:
        """Remove the directories archives were unpacked into."""
        for workdir in self._workdirs:
            workdir.cleanup()
        self._workdirs.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    def _import(self, name: str, locator: str) -> ModuleType:
        path = Path(locator)
        if _is_archive(path):
            return self._import_archive(name, path)
        if path.exists():
            return self._import_path(name, path)
        try:
            return import_module(locator)
        except Exception as exc:
            raise ModuleLoadError(f"Unable to load module {name} from {locator}: {exc}") from exc

    def _import_archive(self, name: str, archive: Path) -> ModuleType:
        workdir = tempfile.TemporaryDirectory(prefix="jsii-kernel-")
        try:
            _unpack(archive, Path(workdir.name))
            entry = _entry_point(Path(workdir.name))
            if entry is None:
                raise ModuleLoadError(
                    f"Unable to load module {name}: no single library found in {archive}"
                )
            module = self._import_path(name, entry)
        except ModuleLoadError:
            workdir.cleanup()
            raise
        except Exception as exc:
            workdir.cleanup()
            raise ModuleLoadError(f"Unable to unpack module {name} from {archive}: {exc}") from exc
        self._workdirs.append(workdir)
        return module

    def _import_path(self, name: str, path: Path) -> ModuleType:
        path = path.resolve()
        if path.is_dir():
            entry = path / "__init__.py"
            search = [str(path)]
        else:
            entry = path
            search = None

        if not entry.is_file():
            raise ModuleLoadError(f"Unable to load module {name}: no Python source at {entry}")

        # Bridged libraries live under jsii_kernel.loaded.*, one fresh name per load.
        safe_name = re.sub(r"\W", "_", name)
        module_name = f"jsii_kernel.loaded.{safe_name}_{uuid.uuid4().hex}"
        spec = importlib.util.spec_from_file_location(
            module_name, entry, submodule_search_locations=search
        )
        if spec is None or spec.loader is None:
            raise ModuleLoadError(f"Unable to load module {name} from {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            for key in [k for k in sys.modules if k == module_name or k.startswith(module_name + ".")]:
                del sys.modules[key]
            raise ModuleLoadError(f"Unable to load module {name} from {path}: {exc}") from exc
        return module
