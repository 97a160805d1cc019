"""Dynamic loader for user route initializers."""

import importlib
import sys
from typing import Callable, List, Optional

from mox.config.log import get_logger
from mox.routing.router import MoxRouter

logger = get_logger(__name__)

Initializer = Callable[[MoxRouter], None]


def load_initializer(import_path: str, search_paths: Optional[List[str]] = None) -> Initializer:
    """Load a route initializer from 'package.module:function'.

    Args:
        import_path: Import path of the module and the attribute to call with the router
        search_paths: Extra directories to add to the Python path first

    Example:
        load_initializer('my_mocks.routes:register')
    """
    for path in search_paths or []:
        if path not in sys.path:
            sys.path.insert(0, path)
            logger.debug(f'Added initializer path: {path}')

    module_name, sep, attr_name = import_path.partition(':')
    if not sep or not module_name or not attr_name:
        raise ValueError(f"Initializer '{import_path}' must look like 'package.module:function'")

    try:
        module = importlib.import_module(module_name)
        initializer = getattr(module, attr_name)
    except (ImportError, AttributeError) as e:
        logger.error(f"Failed to load initializer '{import_path}': {e}", exc_info=True)
        raise RuntimeError(f"Cannot load initializer '{import_path}': {e}") from e

    if not callable(initializer):
        raise ValueError(f"Initializer '{import_path}' is not callable")

    logger.info(f'Loaded initializer: {import_path}')
    return initializer
