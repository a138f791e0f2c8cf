"""Puzzles shared by the test modules."""

WIKI = "530070000600195000098000060800060003400803001700020006060000280000419005000080079"
WIKI_SOLUTION = "534678912672195348198342567859761423426853791713924856961537284287419635345286179"

EASY = "003020600900305001001806400008102900700000008006708200002609500800203009005010300"
EASY_SOLUTION = "483921657967345821251876493548132976729564138136798245372689514814253769695417382"

# Needs guessing; the completion is unique.
HARD = "800000000003600000070090200050007000000045700000100030001000068008500010090000400"
HARD_SOLUTION = "812753649943682175675491283154237896369845721287169534521974368438526917796318452"

EMPTY = "." * 81

# Row 1 needs a 9 at r1c9, but r2c9 already holds it.
DEAD_END = "12345678." + "........9" + "." * 63


def with_digits(placements, base=EMPTY):
    """Return ``base`` with (row, col, digit) placements written in."""
    chars = list(base)
    for row, col, digit in placements:
        chars[row * 9 + col] = str(digit)
    return "".join(chars)
