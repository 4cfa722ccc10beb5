
import typing


__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"

__all__ = [
    "split_list",
    "normalize_channel_name",
]


LIST_SEPARATOR = ","

CHANNEL_PREFIX = "#"


def split_list(
        value: typing.Union[None, str, typing.Iterable[str]],
        separator: str = LIST_SEPARATOR,
) -> typing.List[str]:
    """
    Returns the items of a comma-separated list :py:data:`value` (as
    provided on the command line), stripped of surrounding whitespace,
    with empty items removed. The order of the items is preserved, and
    duplicates are kept.

    :param value: A comma-separated string, an iterable of such strings
        (such as the value of a repeated option), or ``None``
    :type value: Optional[str]

    :param separator: The separator of the items
    :type separator: str

    :return: The list of non-empty items, in their original order
    """

    if value is None:
        return []

    if isinstance(value, str):
        value = [value]

    items = []
    for chunk in value:
        for item in chunk.split(separator):
            item = item.strip()
            if item != "":
                items.append(item)

    return items


def normalize_channel_name(name: str) -> str:
    """
    Returns the name of a channel without the leading ``#`` that
    users often type (the Slack API only ever returns bare names).

    :param name: A channel name, such as ``#general`` or ``general``
    :return: The bare channel name
    """
    name = name.strip()
    if name.startswith(CHANNEL_PREFIX):
        name = name[len(CHANNEL_PREFIX):]
    return name
