"""Order-insensitive comparison of nameserver lists."""


def diff_lists(first: list[str], second: list[str]) -> tuple[list[str], list[str]]:
    """Calculate the leftovers of each list after pairing equal items.

    Both sides are sorted before diffing, so the order in which DNS returned
    the records never matters. Duplicates are matched one to one.

    Args:
        first: First list of names.
        second: Second list of names.

    Returns:
        tuple[list[str], list[str]]: (only_in_first, only_in_second), sorted.

    Examples:
        >>> diff_lists(["ns2", "ns1"], ["ns1", "ns3"])
        (['ns2'], ['ns3'])
    """
    remaining = sorted(second)
    first_leftovers = []

    for item in sorted(first):
        if item in remaining:
            remaining.remove(item)
        else:
            first_leftovers.append(item)

    return first_leftovers, remaining


def lists_equal(first: list[str], second: list[str]) -> bool:
    """Check whether two lists hold the same elements in any order."""
    only_first, only_second = diff_lists(first, second)
    return not only_first and not only_second


def format_list(items: list[str]) -> str:
    """Render a list the way findings quote it, e.g. ``[ns1,ns2]``."""
    return "[" + ",".join(items) + "]"
