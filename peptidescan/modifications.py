"""Handle modification annotations in reported peptide sequences.

PEAKS writes modified residues inline, followed by the mass shift in
parentheses::

    LM(+15.99)TQGGK
    Q(-17.03)LEEVK

Substring matching against protein sequences needs the bare amino acid
sequence, so annotations are stripped before searching. The reported
sequence (with annotations) stays the identity of a peptide everywhere else.

Examples
--------
>>> strip_modifications("LM(+15.99)TQGGK")
'LMTQGGK'
"""

from __future__ import annotations

from .constants import MODIFICATION_PATTERN


def strip_modifications(sequence: str) -> str:
    """Remove all parenthesized signed mass shifts from a sequence.

    Parameters
    ----------
    sequence : str
        Peptide sequence, possibly annotated

    Returns
    -------
    str
        Sequence with every ``(+x.y)``/``(-x.y)`` annotation removed

    Examples
    --------
    >>> strip_modifications("AYIAK(+15.99)")
    'AYIAK'
    >>> strip_modifications("PEPTIDE")
    'PEPTIDE'
    """
    return MODIFICATION_PATTERN.sub("", sequence)


def is_modified(sequence: str) -> bool:
    return MODIFICATION_PATTERN.search(sequence) is not None
