"""
Utility for loading SQL queries shipped as .sql files next to their callers.
"""
from pathlib import Path


def load_sql_file(sql_filename: str, relative_to_file: str | Path | None = None) -> str:
    """
    Load a SQL query from a .sql file.

    Parameters
    ----------
    sql_filename : str
        Name of the SQL file (e.g., 'QUERY_STAY_WINDOWS.sql').
        Can include a path relative to the calling file's directory.
    relative_to_file : str | Path | None, default=None
        Path of the module calling this function, typically its __file__.

    Returns
    -------
    str
        Contents of the SQL file.

    Examples
    --------
    >>> query = load_sql_file('sql/QUERY_STAY_WINDOWS.sql', __file__)
    """
    if relative_to_file is None:
        raise ValueError(
            "relative_to_file must be provided. Use: load_sql_file('query.sql', __file__)"
        )

    sql_path = Path(relative_to_file).parent / sql_filename

    if not sql_path.exists():
        raise FileNotFoundError(
            f"SQL file not found: {sql_path}\n"
            f"Expected location: {sql_path.absolute()}"
        )

    return sql_path.read_text(encoding='utf-8')
