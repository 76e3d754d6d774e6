"""
Tests for scenario ids and the anomaly classifier.
"""

import pytest

import editdetector.detection.classifier as classifier_module
from editdetector.config import Config
from editdetector.detection.classifier import ScenarioClassifier
from editdetector.detection.cursor import CursorPosition, PriorState, advance
from editdetector.detection.scenario import AnomalyPredicate, decode, describe, encode
from editdetector.detection.sequences import match_pattern, sequence_names
from editdetector.events.models import CommitEvent, IntentEvent, NodeRef, OtherEvent, RangeInfo
from editdetector.events.pairing import make_pair

P = AnomalyPredicate

PARA = NodeRef(node_name="P", id="p1")
TEXT = NodeRef(node_name="#text", id="text_1")


def intent(ts=1000, disc="insertText", data="a", parent=PARA, node=TEXT, start_offset=3, **kw):
    return IntentEvent(id=1, timestamp=ts, discriminator=disc, data=data, parent=parent, node=node,
                       start_offset=start_offset, **kw)


def commit(ts=1001, disc="insertText", data="a", parent=PARA, node=TEXT, text="abcd", start_offset=4, **kw):
    return CommitEvent(id=2, timestamp=ts, discriminator=disc, data=data, parent=parent, node=node,
                       container_text=text, start_offset=start_offset, **kw)


def other(id, ts, event_type):
    return OtherEvent(id=id, timestamp=ts, event_type=event_type)


class TestScenarioCodec:
    """Test canonical scenario id encoding."""

    def test_empty_set_is_zero(self):
        assert encode([]) == "0"
        assert decode("0") == []
        assert encode(decode("0")) == "0"

    def test_encode_sorts_by_rank(self):
        assert encode([P.PARENT_MISMATCH, P.INPUT_TYPE_MISMATCH]) == "1.2"
        assert encode([P.UNEXPECTED_SEQUENCE, P.BOUNDARY_INPUT, P.NODE_MISMATCH]) == "3.7.11"

    def test_encode_collapses_duplicates(self):
        assert encode([P.NODE_MISMATCH, P.NODE_MISMATCH]) == "3"

    def test_round_trip_is_set_equal(self):
        samples = [
            [P.MISSING_INPUT],
            [P.RANGE_DOM_MISMATCH, P.INPUT_TYPE_MISMATCH],
            [P.UNEXPECTED_SEQUENCE, P.FULL_SELECTION, P.SELECTION_MISMATCH, P.PARENT_MISMATCH],
            list(AnomalyPredicate),
        ]
        for predicates in samples:
            assert set(decode(encode(predicates))) == set(predicates)

    def test_unknown_numerals_are_skipped(self):
        assert decode("1.99.2") == [P.INPUT_TYPE_MISMATCH, P.PARENT_MISMATCH]
        assert decode("x.4") == [P.SELECTION_MISMATCH]
        assert decode("") == []

    def test_non_ascii_digits_are_skipped(self):
        assert decode("1.²") == [P.INPUT_TYPE_MISMATCH]
        assert decode("٣") == []
        assert describe("².1") == "InputType mismatch"

    def test_describe(self):
        assert describe("0") == "Normal input"
        assert describe("1.2") == "InputType mismatch + Parent mismatch"
        assert describe("5") == "Missing beforeinput"

    def test_ranks_are_stable(self):
        assert [p.rank for p in AnomalyPredicate] == list(range(1, 12))
        assert AnomalyPredicate.from_slug("boundary-input") is P.BOUNDARY_INPUT
        assert AnomalyPredicate.from_rank(12) is None


class TestSequences:
    """Test the known-good event sequence catalog."""

    def test_simple_input_matches(self):
        names = ["selectionchange", "beforeinput", "input"]
        assert match_pattern(names).name == "simple-input"

    def test_composition_matches_before_compositionend(self):
        names = ["compositionstart", "compositionupdate", "beforeinput", "input"]
        assert match_pattern(names) is not None

    def test_lone_input_does_not_match(self):
        assert match_pattern(["selectionchange", "input"]) is None

    def test_repeats_collapse_and_window_applies(self):
        events = [other(i, 1000 + i, "selectionchange") for i in range(5)]
        events += [intent(ts=1010), commit(ts=1011)]
        assert sequence_names(events, window=10) == ["selectionchange", "beforeinput", "input"]
        assert sequence_names(events, window=1) == ["input"]


class TestScenarioClassifier:
    """Test per-predicate detection and result assembly."""

    def setup_method(self):
        self.classifier = ScenarioClassifier(Config())

    def test_normal_pair(self):
        result = self.classifier.classify(make_pair(intent(), commit()))

        assert not result.is_abnormal
        assert result.triggered_predicates == ()
        assert result.trigger is None
        assert result.scenario_id is None
        assert result.human_description is None
        assert result.detail == "Normal input"

    def test_input_type_mismatch_only(self):
        pair = make_pair(intent(disc="insertText"), commit(disc="insertCompositionText"))
        result = self.classifier.classify(pair)

        assert result.triggered_predicates == (P.INPUT_TYPE_MISMATCH,)
        assert result.scenario_id == "1"
        assert result.trigger is P.INPUT_TYPE_MISMATCH
        assert result.human_description == "InputType mismatch"

    def test_parent_mismatch_only(self):
        pair = make_pair(intent(parent=NodeRef(node_name="P", id="p1")),
                         commit(parent=NodeRef(node_name="P", id="p2")))
        result = self.classifier.classify(pair)

        assert result.scenario_id == "2"
        assert result.trigger is P.PARENT_MISMATCH

    def test_both_mismatches_combine(self):
        pair = make_pair(intent(disc="insertText", parent=NodeRef(node_name="P", id="p1")),
                         commit(disc="insertCompositionText", parent=NodeRef(node_name="P", id="p2")))
        result = self.classifier.classify(pair)

        assert result.scenario_id == "1.2"
        assert result.trigger is P.INPUT_TYPE_MISMATCH
        assert result.detail == "Detected conditions: input-type-mismatch, parent-mismatch"

    def test_unresolvable_parent_does_not_fire(self):
        pair = make_pair(intent(parent=NodeRef(node_name="P")), commit(parent=NodeRef(node_name="P", id="p2")))
        assert not self.classifier.check(P.PARENT_MISMATCH, pair)

    def test_node_mismatch(self):
        pair = make_pair(intent(), commit(node=NodeRef(node_name="SPAN", id="s1")))
        assert self.classifier.classify(pair).scenario_id == "3"

    def test_missing_beforeinput(self):
        result = self.classifier.classify(make_pair(None, commit()))

        assert result.is_abnormal
        assert P.MISSING_BEFOREINPUT in result.triggered_predicates
        assert result.scenario_id == "5"

    def test_missing_input(self):
        result = self.classifier.classify(make_pair(intent(), None))
        assert result.scenario_id == "6"

    def test_cursor_jump_against_prior_commit(self):
        prior = PriorState(last_commit=CursorPosition(parent_id="p1", offset=0, end_offset=0, timestamp=500))
        jumped = make_pair(intent(start_offset=19), commit(start_offset=20, text="x" * 20))
        near = make_pair(intent(start_offset=9), commit(start_offset=10, text="x" * 20))

        assert self.classifier.classify(jumped, prior).scenario_id == "4"
        assert not self.classifier.classify(near, prior).is_abnormal

    def test_cursor_jump_needs_prior_state_and_same_parent(self):
        pair = make_pair(intent(start_offset=19), commit(start_offset=20, text="x" * 20))
        other_parent = PriorState(last_commit=CursorPosition(parent_id="p9", offset=0, end_offset=0, timestamp=1))

        assert not self.classifier.check(P.SELECTION_MISMATCH, pair)
        assert not self.classifier.check(P.SELECTION_MISMATCH, pair, other_parent)

    def test_boundary_input_in_inline_container(self):
        span = NodeRef(node_name="SPAN", id="s1")
        at_start = make_pair(intent(parent=span, start_offset=0), commit(parent=span, start_offset=1))
        inside = make_pair(intent(parent=span, start_offset=2), commit(parent=span, start_offset=3))

        assert self.classifier.classify(at_start).scenario_id == "7"
        assert not self.classifier.classify(inside).is_abnormal

    def test_boundary_at_end_of_content(self):
        span = NodeRef(node_name="SPAN", id="s1")
        pair = make_pair(None, commit(parent=span, text="abc", start_offset=3))
        assert self.classifier.classify(pair).scenario_id == "5.7"

    def test_block_container_is_not_a_boundary(self):
        pair = make_pair(intent(start_offset=0), commit(start_offset=1))
        assert not self.classifier.check(P.BOUNDARY_INPUT, pair)

    def test_full_selection(self):
        ranged = intent(range=RangeInfo(start_offset=0, end_offset=3, collapsed=False))
        pair = make_pair(ranged, commit(range=RangeInfo(start_offset=1, end_offset=1)))
        assert self.classifier.classify(pair).scenario_id == "8"

    def test_range_inconsistency(self):
        bi = intent(data="a", range=RangeInfo(start_offset=0, end_offset=0))
        off = make_pair(bi, commit(text="x" * 20, range=RangeInfo(start_offset=10, end_offset=10)))
        close = make_pair(bi, commit(text="x" * 20, range=RangeInfo(start_offset=4, end_offset=4)))

        assert self.classifier.classify(off).scenario_id == "9"
        assert not self.classifier.check(P.RANGE_INCONSISTENCY, close)

    def test_range_dom_mismatch(self):
        pair = make_pair(intent(), commit(text="abc", range=RangeInfo(start_offset=20, end_offset=20)))
        assert self.classifier.classify(pair).scenario_id == "10"

        within = make_pair(intent(), commit(text="abc", range=RangeInfo(start_offset=8, end_offset=8)))
        assert not self.classifier.check(P.RANGE_DOM_MISMATCH, within)

    def test_unexpected_sequence(self):
        pair = make_pair(intent(), commit())
        expected = [other(1, 900, "selectionchange"), intent(ts=1000), commit(ts=1001)]
        unexpected = [other(1, 900, "compositionstart"), commit(ts=1001)]

        assert not self.classifier.classify(pair, recent_events=expected).is_abnormal
        assert self.classifier.classify(pair, recent_events=unexpected).scenario_id == "11"
        assert not self.classifier.check(P.UNEXPECTED_SEQUENCE, pair, recent_events=[])

    def test_thresholds_come_from_config(self):
        strict = ScenarioClassifier(Config(range_tolerance=0))
        pair = make_pair(intent(), commit(text="abc", range=RangeInfo(start_offset=4, end_offset=4)))

        assert strict.check(P.RANGE_DOM_MISMATCH, pair)
        assert not self.classifier.check(P.RANGE_DOM_MISMATCH, pair)

    def test_all_predicates_are_collected(self):
        span = NodeRef(node_name="SPAN", id="s1")
        pair = make_pair(None, commit(parent=span, text="", start_offset=0,
                                      range=RangeInfo(start_offset=9, end_offset=9)))
        result = self.classifier.classify(pair, recent_events=[other(1, 990, "compositionstart")])

        assert result.scenario_id == "5.7.10.11"
        assert result.trigger is P.MISSING_BEFOREINPUT
        assert result.human_description == "Missing beforeinput + Boundary input + Range-DOM mismatch + Unexpected sequence"

    def test_failing_predicate_evaluates_false(self, monkeypatch):
        def boom(ctx):
            raise RuntimeError("broken predicate")

        catalog = ((P.INPUT_TYPE_MISMATCH, boom),) + classifier_module.PREDICATE_CATALOG[1:]
        monkeypatch.setattr(classifier_module, "PREDICATE_CATALOG", catalog)

        pair = make_pair(intent(disc="insertText"), commit(disc="insertReplacementText"))
        result = self.classifier.classify(pair)
        assert not result.is_abnormal

    def test_none_pair_is_rejected(self):
        with pytest.raises(ValueError):
            self.classifier.classify(None)

    def test_result_serializes(self):
        result = self.classifier.classify(make_pair(None, commit()))
        data = result.to_dict()
        assert data["scenario_id"] == "5"
        assert data["trigger"] == "missing-beforeinput"
        assert data["triggered_predicates"] == ["missing-beforeinput"]


class TestCursorState:
    """Test caller-owned cursor state refresh."""

    def test_advance_records_both_sides(self):
        pair = make_pair(intent(start_offset=3), commit(start_offset=4, text="abcd"))
        state = advance(None, pair)

        assert state.last_commit.offset == 4
        assert state.last_commit.parent_id == "p1"
        assert state.last_commit.text_length == 4
        assert state.last_intent.offset == 3

    def test_advance_keeps_missing_side(self):
        first = advance(None, make_pair(intent(), commit(start_offset=4)))
        second = advance(first, make_pair(intent(start_offset=7), None))

        assert second.last_commit == first.last_commit
        assert second.last_intent.offset == 7
