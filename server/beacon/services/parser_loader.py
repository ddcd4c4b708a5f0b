import importlib
import logging
from types import ModuleType
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ParserInitError(RuntimeError):
    """The parser library could not be loaded or set up."""


class ParserResource:
    """Lazily imported PDF parser module.

    The module is loaded on first ``get()`` and memoised. ``reset()`` drops the
    memoised module so the next ``get()`` loads it again, which is what the
    text extractor does before retrying after an initialisation failure.
    """

    def __init__(
        self,
        module_name: str = "fitz",
        importer: Callable[[str], ModuleType] = importlib.import_module,
    ):
        self.module_name = module_name
        self._importer = importer
        self._module: Optional[ModuleType] = None
        self.load_count = 0

    @property
    def loaded(self) -> bool:
        return self._module is not None

    def get(self) -> ModuleType:
        if self._module is None:
            try:
                self._module = self._importer(self.module_name)
            except Exception as e:
                raise ParserInitError(f"Could not initialise '{self.module_name}': {e}") from e
            self.load_count += 1
            logger.debug(f"Loaded PDF parser module '{self.module_name}'")
        return self._module

    def reset(self) -> None:
        if self._module is not None:
            logger.info(f"Resetting PDF parser module '{self.module_name}'")
        self._module = None
        importlib.invalidate_caches()


# Shared across requests; it holds no per-request state.
pymupdf_parser = ParserResource("fitz")
