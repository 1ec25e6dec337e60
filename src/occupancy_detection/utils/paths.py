# stdlib
from pathlib import Path
from typing import List
# projectlib
from occupancy_detection.utils.typing import Address

def validate_address(
    address: Address,
    *,
    directory: bool = False,
    extension: str = ".csv",
    mkdir: bool = False,
) -> Path:
    """
    Validate and normalize an input file or directory path.

    Parameters
    ----------
    address : Address
        File or directory path as a string or ``Path``.
    directory : bool, default False
        If True the address must be an existing directory, otherwise an
        existing file carrying ``extension``.
    extension : str, default ".csv"
        Required suffix for file addresses. Ignored for directories.
    mkdir : bool, default False
        Create the directory (including parents) when it is missing.
        Only meaningful with ``directory=True``.

    Returns
    -------
    pathlib.Path
        Validated path.

    Raises
    ------
    NotADirectoryError
        If a directory was requested and none exists at ``address``.
    FileNotFoundError
        If a file was requested and none exists at ``address``.
    ValueError
        If the file suffix does not match ``extension``.
    """
    path = Path(address)
    if directory:
        if mkdir:
            path.mkdir(parents=True, exist_ok=True)
        if not path.is_dir():
            msg = f"{path} does not exist or is not a directory."
            raise NotADirectoryError(msg)
        return path
    if not path.is_file():
        msg = f"{path} is not a file or does not exist."
        raise FileNotFoundError(msg)
    if path.suffix.lower() != extension:
        msg = f"{path} does not have the expected '{extension}' suffix."
        raise ValueError(msg)
    return path

def list_files(directory: Address, *, extension: str = ".csv") -> List[Path]:
    """Return the files in ``directory`` with ``extension``, sorted by name."""
    root = validate_address(directory, directory=True)
    return sorted(
        p for p in root.iterdir()
        if p.is_file() and p.suffix.lower() == extension
    )
