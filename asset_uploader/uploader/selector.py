"""Pick the build output files that should be uploaded."""

from typing import Iterable, List, Pattern

from asset_uploader.uploader.models import FileRecord
from asset_uploader.utils.logging import get_logger, log_function_call

logger = get_logger(__name__)


@log_function_call
def select_files(
    files: Iterable[FileRecord],
    include: Pattern[str],
    exclude: Pattern[str],
) -> List[FileRecord]:
    """
    Keep the files whose name matches ``include`` and not ``exclude``.

    Exclude is checked first, so a name matching both is dropped. Patterns
    match anywhere in the name (``re.search``). Order is preserved.

    Example:
        >>> import re
        >>> files = [FileRecord("index.html"), FileRecord("assets/app.js")]
        >>> [f.name for f in select_files(files, re.compile(".*"), re.compile(r"\\.html$"))]
        ['assets/app.js']
    """
    selected = []
    for file in files:
        if exclude.search(file.name):
            logger.debug(f"Excluded: {file.name}")
            continue
        if include.search(file.name):
            selected.append(file)
    return selected
