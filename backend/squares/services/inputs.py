from squares.models import GRID_SIZE
from .errors import InvalidArgument


def parse_int(value, field: str) -> int:
    """Coerce a JSON value to int, rejecting booleans and fractional numbers."""
    if value is None or isinstance(value, bool):
        raise InvalidArgument(f'{field} is required')
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidArgument(f'{field} must be an integer')
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f'{field} must be an integer')


def parse_id(value, field: str) -> int:
    # ids are positive; 0 and '' count as missing
    if not value:
        raise InvalidArgument(f'{field} is required')
    return parse_int(value, field)


def parse_cell(row, col):
    if row is None or col is None:
        raise InvalidArgument('row and col are required')
    r = parse_int(row, 'row')
    c = parse_int(col, 'col')
    if not (0 <= r < GRID_SIZE and 0 <= c < GRID_SIZE):
        raise InvalidArgument('Invalid row or column')
    return r, c
