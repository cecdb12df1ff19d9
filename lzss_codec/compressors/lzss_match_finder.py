"""Greedy match finder for the LZSS encoder

The match finder reproduces the search of a legacy encoder bit for bit, so that the encoded output
is identical to what that encoder produces. It is deliberately greedy and not optimal.

The window on the encoder side is simply the input itself: the candidate sources for position p are
the bytes p-3, p-4, ..., p-min(p, 1023). No circular buffer is needed since the whole input is in
memory and a distance can never point before the start of the data.

Search rules for position p (all of them affect the output):
- distances are scanned in ascending order starting at 3 (MIN_DISTANCE). A candidate replaces the
  best one only if it is strictly longer, so among equally long matches the smallest distance wins.
- the number of bytes compared for distance d is min(remaining, d), so a match never overlaps the
  bytes it is producing (length <= distance).
- a match has to be at least 3 bytes long (the "must beat" threshold starts at 2).
- as soon as a candidate is longer than MAX_MATCH_LENGTH (63), its length is capped at 63 and the
  scan stops right there. Note that this can return a larger distance than an earlier candidate
  of length exactly 63 (e.g. (66, 63) rather than (63, 63) for a periodic input); this is what the
  legacy encoder does.
"""

from typing import Tuple
from lzss_codec.compressors.lzss_tokens import WINDOW_SIZE

MIN_DISTANCE = 3
MIN_MATCH_LENGTH = 3
MAX_MATCH_LENGTH = 63  # largest length (6 bits)


class MatchFinderBase:
    """Base class for LZSS match finders. The match finder is used to find the best match for a
    position in the data, looking back at most window_size bytes.
    """

    def __init__(self, window_size=WINDOW_SIZE):
        self.window_size = window_size
        self.data = b""

    def reset(self):
        """Reset the match finder, dropping the data it searches in."""
        self.data = b""

    def set_data(self, data):
        """Sets the data to be searched. Matches for position p are searched in data[:p]."""
        self.data = data

    def count_matching_bytes(self, position, distance, max_check):
        """count how many bytes starting at position match the bytes starting distance bytes before"""
        data = self.data
        match_length = 0
        while match_length < max_check and (
            data[position + match_length] == data[position - distance + match_length]
        ):
            match_length += 1
        return match_length

    def find_best_match(self, position) -> Tuple[int, int]:
        """
        Find the best match for the given position.

        Returns:
        - tuple: (distance, length), (0, 0) if there is no match
        """
        raise NotImplementedError


class GreedyMatchFinder(MatchFinderBase):
    """Brute force search over all the distances of the window in ascending order.

    Parameters:
    - window_size (int): largest distance considered
    - max_match_length (int): largest encodable length; longer candidates are capped and end the search
    """

    def __init__(self, window_size=WINDOW_SIZE, max_match_length=MAX_MATCH_LENGTH):
        super().__init__(window_size=window_size)
        self.max_match_length = max_match_length

    def find_best_match(self, position):
        data = self.data
        remaining = len(data) - position
        search_limit = min(position, self.window_size)

        # must beat this to be worth encoding
        best_length = MIN_MATCH_LENGTH - 1
        best_distance = 0

        # not enough history for the smallest distance
        if search_limit < MIN_DISTANCE:
            return 0, 0

        current_byte = data[position]
        for distance in range(MIN_DISTANCE, search_limit + 1):
            candidate = position - distance

            # quick rejections, these only skip work and never change the result
            if data[candidate] != current_byte:
                continue
            if best_length < remaining and (
                data[position + best_length] != data[candidate + best_length]
            ):
                continue

            # can't match more than the distance (no self overlap)
            max_check = min(remaining, distance)
            match_length = self.count_matching_bytes(position, distance, max_check)

            if match_length > best_length:
                best_length = match_length
                best_distance = distance

            if match_length > self.max_match_length:
                best_length = self.max_match_length
                best_distance = distance
                break

        if best_length < MIN_MATCH_LENGTH:
            return 0, 0
        return best_distance, best_length


############################## TESTS ####################################


def _find_all_matches(data):
    """run the greedy parse and return [(position, distance, length)] for the matches"""
    match_finder = GreedyMatchFinder()
    match_finder.set_data(data)
    matches = []
    position = 0
    while position < len(data):
        distance, length = match_finder.find_best_match(position)
        if length > 0:
            matches.append((position, distance, length))
            position += length
        else:
            position += 1
    return matches


def test_no_match_without_history():
    match_finder = GreedyMatchFinder()
    match_finder.set_data(b"AAAAAA")
    # less than 3 bytes of history: distance 3 is not reachable
    for position in range(3):
        assert match_finder.find_best_match(position) == (0, 0)
    assert match_finder.find_best_match(3) == (3, 3)


def test_smallest_distance_wins_ties():
    # two candidates of the same length
    data = b"XYZ" + b"-" * 7 + b"XYZ" + b"XYZ"
    match_finder = GreedyMatchFinder()
    match_finder.set_data(data)
    # at position 13, "XYZ" is found at distance 3 and at distance 13 (both length 3)
    assert match_finder.find_best_match(13) == (3, 3)


def test_strictly_longer_match_wins():
    data = b"ABCDE" + b"ABC" + b"ABCDE"
    match_finder = GreedyMatchFinder()
    match_finder.set_data(data)
    # distance 3 gives "ABC" (3 bytes), distance 8 gives "ABCDE" (5 bytes)
    assert match_finder.find_best_match(8) == (8, 5)


def test_length_never_exceeds_distance():
    data = b"ab" * 300
    for position, distance, length in _find_all_matches(data):
        assert length <= distance
        assert 3 <= distance <= WINDOW_SIZE
        assert 3 <= length <= MAX_MATCH_LENGTH
        source = position - distance
        assert data[position : position + length] == data[source : source + length]


def test_repeated_byte_matches():
    """200 identical bytes: lengths grow with the history, then get capped at 63"""
    matches = _find_all_matches(b"A" * 200)
    assert matches == [
        (3, 3, 3),
        (6, 6, 6),
        (12, 12, 12),
        (24, 24, 24),
        (48, 48, 48),
        (96, 64, 63),
        (159, 41, 41),
    ]


def test_capped_match_keeps_first_distance_over_cap():
    """with a period 3 pattern, distance 63 gives exactly 63 bytes but the scan only stops at the
    first candidate longer than 63 (distance 66)"""
    data = (b"ABC" * 400)[:1025]
    match_finder = GreedyMatchFinder()
    match_finder.set_data(data)
    assert match_finder.find_best_match(3) == (3, 3)
    assert match_finder.find_best_match(96) == (66, 63)

    # the same cap shows up in the full parse
    matches = _find_all_matches(data)
    assert matches[0] == (3, 3, 3)
    assert matches[5] == (96, 66, 63)


def test_window_limit():
    """a repetition further back than the window size can't be used"""
    data = b"QRSTUV" + bytes([0, 1, 2, 3] * 256) + b"QRSTUV"
    match_finder = GreedyMatchFinder()
    match_finder.set_data(data)
    position = len(data) - 6
    assert position > WINDOW_SIZE
    assert match_finder.find_best_match(position) == (0, 0)

    # a bigger window finds it
    match_finder = GreedyMatchFinder(window_size=2048)
    match_finder.set_data(data)
    assert match_finder.find_best_match(position) == (position, 6)
