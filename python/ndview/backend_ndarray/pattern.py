"""Parsing of einsum-like transpose patterns such as ``"ijk->kij"``."""
import re

from ..errors import InvalidTransposePattern

_SEPARATOR = "->"
_LATIN = re.compile(r"[a-zA-Z]*")


def split_pattern(pattern):
    """Split ``"<from>-><to>"`` into its two label strings, whitespace trimmed."""
    if not isinstance(pattern, str):
        raise TypeError("transpose pattern must be a string, got %r" % (pattern,))
    source, sep, target = pattern.partition(_SEPARATOR)
    if not sep:
        raise InvalidTransposePattern(
            "transpose pattern %r has no %r separator" % (pattern, _SEPARATOR)
        )
    return source.strip(), target.strip()


def parse_transpose_pattern(pattern, ndim):
    """
    Map each source axis to its position in the target.

    Given ``"ijkl->ikjl"`` and ``ndim == 4`` this returns ``(0, 2, 1, 3)``:
    source axis ``n`` becomes target axis ``result[n]``.

    Raises:
        InvalidTransposePattern if the separator is missing, the two sides
        differ in length or in their label sets, their length is not
        ``ndim``, a label is not a latin letter, or a label repeats.
    """
    source, target = split_pattern(pattern)
    if len(source) != len(target):
        raise InvalidTransposePattern(
            "transpose source %r and target %r have different lengths"
            % (source, target)
        )
    if len(source) != ndim:
        raise InvalidTransposePattern(
            "transpose pattern %r names %d axes, array has %d"
            % (pattern, len(source), ndim)
        )
    if not (_LATIN.fullmatch(source) and _LATIN.fullmatch(target)):
        raise InvalidTransposePattern(
            "transpose labels must be latin letters, got %r" % pattern
        )
    if len(set(source)) != len(source) or len(set(target)) != len(target):
        raise InvalidTransposePattern("transpose pattern %r repeats a label" % pattern)

    positions = {label: i for i, label in enumerate(target)}
    missing = [label for label in source if label not in positions]
    if missing:
        raise InvalidTransposePattern(
            "transpose labels %s of %r are missing from the target"
            % (", ".join(missing), pattern)
        )
    return tuple(positions[label] for label in source)
