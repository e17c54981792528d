"""Readers for adjacency matrix and node coordinate files.

Both formats are plain text with whitespace separated tokens, one row per
line. A blank line ends the input early.
"""

from typing import IO, Iterator, List, Tuple

from matrix_sim.errors import DimensionMismatch, MalformedInput
from matrix_sim.log_config import get_logger

logger = get_logger(__name__)

AdjacencyMatrix = List[List[bool]]
CoordinateList = List[Tuple[float, float]]

_MATRIX_TOKENS = {"0": False, "1": True}


def _open(filename: str) -> IO[str]:
    try:
        return open(filename, encoding="utf-8")
    except OSError as e:
        raise MalformedInput(f"File {filename} not found") from e


def _lines(f: IO[str], filename: str) -> Iterator[str]:
    try:
        yield from f
    except UnicodeDecodeError as e:
        raise MalformedInput(f"File {filename} is not a text file: {e}") from e


def read_adjacency_matrix(filename: str) -> AdjacencyMatrix:
    """Read an N x N 0/1 adjacency matrix.

    Args:
        filename: Path to the adjacency matrix file.

    Returns:
        The matrix as a list of boolean rows.

    Raises:
        MalformedInput: If the file cannot be opened, a token is not 0 or 1,
            a row is not as wide as row 0, or the number of rows differs from
            the number of columns.
    """
    matrix: AdjacencyMatrix = []
    n_columns = 0

    with _open(filename) as f:
        for i, line in enumerate(_lines(f, filename)):
            if not line.strip():
                logger.warning("Ignoring blank row in the array: %d", i)
                break

            row: List[bool] = []
            for token in line.split():
                if token not in _MATRIX_TOKENS:
                    raise MalformedInput(
                        f"Invalid token {token!r} in line {i} of {filename}, expected 0 or 1"
                    )
                row.append(_MATRIX_TOKENS[token])

            if i == 0:
                n_columns = len(row)

            if len(row) != n_columns:
                logger.error(
                    "Number of elements in line %d: %d not equal to number of elements in line 0: %d",
                    i,
                    len(row),
                    n_columns,
                )
                raise MalformedInput(
                    "The number of rows is not equal to the number of columns in the adjacency matrix"
                )
            matrix.append(row)

    if len(matrix) != n_columns:
        logger.error("There are %d rows and %d columns.", len(matrix), n_columns)
        raise MalformedInput(
            "The number of rows is not equal to the number of columns in the adjacency matrix"
        )

    return matrix


def read_coordinates(filename: str) -> CoordinateList:
    """Read one ``x y`` pair per line.

    Args:
        filename: Path to the coordinates file.

    Returns:
        The coordinates in file order.

    Raises:
        MalformedInput: If the file cannot be opened or a row does not hold
            exactly two numbers.
    """
    coordinates: CoordinateList = []

    with _open(filename) as f:
        for m, line in enumerate(_lines(f, filename)):
            if not line.strip():
                logger.warning("Ignoring blank row: %d", m)
                break

            tokens = line.split()
            if len(tokens) != 2:
                raise MalformedInput(
                    f"Number of elements at line#{m} is {len(tokens)} which is not "
                    f"equal to 2 for node coordinates file {filename}"
                )
            try:
                x, y = float(tokens[0]), float(tokens[1])
            except ValueError as e:
                raise MalformedInput(
                    f"Non-numeric coordinate at line#{m} of {filename}: {line.strip()!r}"
                ) from e
            coordinates.append((x, y))

    return coordinates


def check_dimensions(matrix: AdjacencyMatrix, coordinates: CoordinateList) -> None:
    """Make sure there is exactly one coordinate pair per matrix node.

    Raises:
        DimensionMismatch: If the counts differ.
    """
    if len(coordinates) != len(matrix):
        raise DimensionMismatch(
            f"The number of lines in coordinate file is: {len(coordinates)} not equal "
            f"to the number of nodes in adjacency matrix size {len(matrix)}"
        )


def format_adjacency_matrix(matrix: AdjacencyMatrix) -> str:
    """Serialize a matrix back to the file format, one row per line."""
    return "".join(" ".join("1" if cell else "0" for cell in row) + "\n" for row in matrix)


def write_adjacency_matrix(filename: str, matrix: AdjacencyMatrix) -> None:
    """Write a matrix in the format read_adjacency_matrix accepts."""
    with open(filename, "w", encoding="utf-8") as f:
        f.write(format_adjacency_matrix(matrix))


def is_upper_triangular(matrix: AdjacencyMatrix) -> bool:
    """Return True if no entry on or below the diagonal is set."""
    return not any(matrix[i][j] for i in range(len(matrix)) for j in range(i + 1))


def describe_matrix(description: str, matrix: AdjacencyMatrix) -> None:
    """Log the matrix at DEBUG level, framed by ``description``."""
    logger.debug("**** Start %s ********", description)
    for row in matrix:
        logger.debug(" ".join("1" if cell else "0" for cell in row))
    logger.debug("**** End %s ********", description)


def describe_coordinates(description: str, coordinates: CoordinateList) -> None:
    """Log the coordinates at DEBUG level, framed by ``description``."""
    logger.debug("**** Start %s ********", description)
    for x, y in coordinates:
        logger.debug("%g %g", x, y)
    logger.debug("**** End %s ********", description)
