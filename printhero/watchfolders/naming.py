"""
Destination naming for post-print moves.

Never overwrite: when the destination is taken, a numeric disambiguator is
inserted before the extension (invoice.pdf, then invoice_1.pdf, then invoice_2.pdf).
"""

from pathlib import Path
from typing import Union


DISAMBIGUATOR_SEPARATOR = "_"


def resolve_unique_path(candidate: Union[str, Path]) -> Path:
    """
    Return a path that does not exist at the time of the call.

    The check is not atomic. A concurrent writer can still claim the name
    between this call and the move, in which case the move fails and is
    reported as a disposition failure.

    Args:
        candidate: Desired destination path

    Returns:
        ``candidate`` unchanged if free, otherwise ``<stem>_<n><suffix>``
        with the smallest free n >= 1
    """
    candidate = Path(candidate)
    if not candidate.exists():
        return candidate

    stem = candidate.stem
    suffix = candidate.suffix
    counter = 1
    while True:
        renamed = candidate.with_name(f"{stem}{DISAMBIGUATOR_SEPARATOR}{counter}{suffix}")
        if not renamed.exists():
            return renamed
        counter += 1
