import threading

import pytest

from lime_streamcore.backend.player.subtitles.cues import CueTrack, MAX_OFFSET_SECONDS, find_active_cue
from lime_streamcore.backend.player.subtitles.models import SubtitleCue


class CountingList(list):
    """List that counts index reads."""

    def __init__(self, *args):
        super().__init__(*args)
        self.reads = 0

    def __getitem__(self, index):
        self.reads += 1
        return super().__getitem__(index)


def make_cues(n, length=2.0, gap=1.0):
    cues = []
    t = 0.0
    for i in range(n):
        cues.append(SubtitleCue(t, t + length, f"line {i}"))
        t += length + gap
    return cues


def brute_force(cues, t):
    return [c for c in cues if c.start <= t <= c.end]


def test_lookup_matches_brute_force_over_many_times():
    cues = make_cues(50)
    for step in range(0, 1600):
        t = step / 10.0
        found = find_active_cue(cues, t)
        expected = brute_force(cues, t)
        if expected:
            assert found in expected
        else:
            assert found is None


def test_lookup_boundaries_are_inclusive():
    cues = [SubtitleCue(1.0, 2.0, "a"), SubtitleCue(3.0, 4.0, "b")]
    assert find_active_cue(cues, 1.0).text == "a"
    assert find_active_cue(cues, 2.0).text == "a"
    assert find_active_cue(cues, 2.5) is None
    assert find_active_cue(cues, 4.0).text == "b"
    assert find_active_cue(cues, 4.01) is None


def test_lookup_on_empty_list():
    assert find_active_cue([], 10.0) is None


def test_lookup_with_overlapping_cues_returns_a_containing_cue():
    cues = [SubtitleCue(0.0, 10.0, "long"), SubtitleCue(2.0, 3.0, "short"), SubtitleCue(5.0, 6.0, "other")]
    found = find_active_cue(cues, 2.5)
    assert found is not None
    assert found.start <= 2.5 <= found.end


@pytest.mark.parametrize("n", [1, 10, 1000, 100_000])
def test_lookup_is_logarithmic(n):
    cues = CountingList(make_cues(n))
    bound = n.bit_length() + 1
    for t in (0.5, cues[n // 2].start + 0.1, cues[-1].end, cues[-1].end + 100):
        cues.reads = 0
        find_active_cue(cues, t)
        assert cues.reads <= bound


def test_cue_rejects_start_after_end():
    with pytest.raises(ValueError):
        SubtitleCue(5.0, 4.0, "bad")


def test_track_applies_offset():
    track = CueTrack([SubtitleCue(10.0, 12.0, "hello")])
    assert track.text_at(11.0) == "hello"
    track.offset = 5.0
    assert track.text_at(11.0) == ""
    assert track.text_at(16.0) == "hello"
    track.offset = -5.0
    assert track.text_at(6.0) == "hello"


def test_track_offset_is_clamped():
    track = CueTrack()
    track.offset = 120
    assert track.offset == MAX_OFFSET_SECONDS
    assert track.nudge(-500) == -MAX_OFFSET_SECONDS


def test_track_replace_sorts_and_swaps():
    track = CueTrack([SubtitleCue(0.0, 1.0, "old")])
    before = track.cues
    track.replace([SubtitleCue(5.0, 6.0, "b"), SubtitleCue(1.0, 2.0, "a")])
    assert before == (SubtitleCue(0.0, 1.0, "old"),)
    assert [c.text for c in track.cues] == ["a", "b"]
    assert track.text_at(0.5) == ""


def test_lookup_during_concurrent_replace_never_fails():
    old = make_cues(200)
    new = make_cues(200, length=1.0, gap=0.5)
    track = CueTrack(old)
    errors = []
    stop = threading.Event()

    def reader():
        try:
            while not stop.is_set():
                cue = track.lookup(42.0)
                if cue is not None:
                    assert cue.start <= 42.0 <= cue.end
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    thread = threading.Thread(target=reader)
    thread.start()
    for i in range(200):
        track.replace(new if i % 2 else old)
    stop.set()
    thread.join()
    assert errors == []
