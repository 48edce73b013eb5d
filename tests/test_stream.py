import pytest

from common.config import SpeakerStreamSettings
from common.schemas import ErrorKind, SegmentedResult
from speaker_service.errors import MismatchError, NoTimestampsError
from speaker_service.stream import SpeakerStream

WORDS = [["Yes", 0.0, 0.5], ["there", 0.5, 1.0], ["right", 1.0, 1.5]]


def results_update(words, final=True):
    return {
        "results": [{
            "final": final,
            "alternatives": [{
                "transcript": " ".join(w[0] for w in words),
                "timestamps": words,
            }],
        }],
        "result_index": 0,
    }


def labels_update(words, speakers, last_final=True):
    labels = [
        {"from": w[1], "to": w[2], "speaker": s, "confidence": 0.6, "final": False}
        for w, s in zip(words, speakers)
    ]
    if labels and last_final:
        labels[-1]["final"] = True
    return {"speaker_labels": labels}


class TestSpeakerStream:
    @pytest.fixture
    def stream(self):
        return SpeakerStream(stream_id="test")

    def test_single_speaker(self, stream):
        assert stream.write(results_update(WORDS)) == []
        events = stream.write(labels_update(WORDS, [1, 1, 1]))
        assert len(events) == 1
        result = events[0]
        assert isinstance(result, SegmentedResult)
        assert result.result_index == 0
        assert len(result.results) == 1
        assert result.results[0].speaker == 1
        assert result.results[0].transcript == "Yes there right "
        assert result.results[0].final is True
        assert stream.close() == []

    def test_speaker_change(self, stream):
        stream.write(results_update(WORDS))
        (result,) = stream.write(labels_update(WORDS, [1, 1, 2]))
        assert [(s.speaker, s.transcript, s.final) for s in result.results] == [
            (1, "Yes there ", True),
            (2, "right ", True),
        ]

    def test_mismatch_emits_error_and_no_result(self, stream):
        stream.write(results_update(WORDS[:2]))
        events = stream.write({"speaker_labels": [
            {"from": 0.0, "to": 0.5, "speaker": 1, "confidence": 0.6, "final": False},
            {"from": 0.5, "to": 0.9, "speaker": 1, "confidence": 0.6, "final": True},
        ]})
        assert len(events) == 1
        err = events[0]
        assert isinstance(err, MismatchError)
        assert err.kind == ErrorKind.mismatch
        assert err.speaker_label.span == (0.5, 0.9)
        assert err.timestamp.word == "there"
        assert len(err.timestamps) == 2
        assert len(err.speaker_labels) == 2

    def test_only_first_mismatch_in_round_is_signaled(self, stream):
        events = stream.write(labels_update(WORDS, [1, 1, 1]))
        assert len(events) == 1
        assert events[0].speaker_label.span == (0.0, 0.5)

    def test_missing_timestamps_is_configuration_error(self, stream):
        events = stream.write({
            "results": [{"final": True, "alternatives": [{"transcript": "Yes there right"}]}],
        })
        assert len(events) == 1
        assert isinstance(events[0], NoTimestampsError)
        assert events[0].kind == ErrorKind.configuration
        assert "timestamps and speaker_labels be enabled" in str(events[0])
        assert stream.session.timestamp_count == 0

    def test_stream_stays_open_after_configuration_error(self, stream):
        stream.write({"results": [{"final": True, "alternatives": [{"transcript": "hi"}]}]})
        stream.write(results_update(WORDS))
        assert stream.session.timestamp_count == 3

    def test_labels_still_merged_when_results_lack_timestamps(self, stream):
        stream.write(results_update(WORDS[:1]))
        update = {"results": [{"final": True, "alternatives": [{"transcript": "there"}]}]}
        update.update(labels_update(WORDS[:1], [1]))
        events = stream.write(update)
        assert [type(e) for e in events] == [NoTimestampsError, SegmentedResult]
        assert stream.session.timestamp_count == 1
        assert stream.session.label_count == 1
        assert events[1].results[0].transcript == "Yes "
        assert events[1].results[0].final is True

    def test_non_list_fields_are_ignored(self, stream):
        assert stream.write({"results": "x", "speaker_labels": {"from": 0.0}}) == []
        assert stream.session.timestamp_count == 0
        assert stream.session.label_count == 0

    def test_timestamp_check_can_be_disabled(self):
        stream = SpeakerStream(settings=SpeakerStreamSettings(check_timestamps=False))
        events = stream.write({"results": [{"final": True, "alternatives": [{"transcript": "hi"}]}]})
        assert events == []

    def test_interim_results_are_ignored(self, stream):
        stream.write(results_update(WORDS, final=False))
        assert stream.session.timestamp_count == 0

    def test_results_and_labels_in_one_update(self, stream):
        update = results_update(WORDS)
        update.update(labels_update(WORDS, [2, 2, 2]))
        (result,) = stream.write(update)
        assert result.results[0].speaker == 2

    def test_revised_labels_move_words_between_segments(self, stream):
        stream.write(results_update(WORDS))
        (first,) = stream.write(labels_update(WORDS, [1, 1, 1], last_final=False))
        assert first.results[0].final is False
        assert len(first.results) == 1

        (second,) = stream.write(labels_update(WORDS[1:], [2, 2], last_final=True))
        assert [(s.speaker, s.transcript) for s in second.results] == [
            (1, "Yes "), (2, "there right "),
        ]
        assert all(s.final for s in second.results)

    def test_out_of_order_labels_are_sorted_before_pairing(self, stream):
        stream.write(results_update(WORDS))
        stream.write(labels_update(WORDS[2:], [1]))
        (result,) = stream.write(labels_update(WORDS[:2], [1, 1], last_final=False))
        assert result.results[0].transcript == "Yes there right "
        assert result.results[0].final is True

    def test_partial_labels_emit_partial_result(self, stream):
        stream.write(results_update(WORDS))
        (result,) = stream.write(labels_update(WORDS[:1], [1], last_final=False))
        assert result.results[0].transcript == "Yes "
        assert result.results[0].final is False

    def test_no_labels_no_result(self, stream):
        assert stream.write(results_update(WORDS)) == []

    def test_write_after_close_raises(self, stream):
        stream.close()
        with pytest.raises(RuntimeError, match="closed"):
            stream.write(results_update(WORDS))


class TestFinalizationCheck:
    @pytest.fixture
    def stream(self):
        return SpeakerStream(stream_id="test")

    def test_empty_session_is_balanced(self, stream):
        assert stream.close() == []

    def test_labels_never_enabled(self, stream):
        stream.write(results_update(WORDS))
        (err,) = stream.close()
        assert isinstance(err, MismatchError)
        assert "No speaker_labels found" in str(err)
        assert len(err.timestamps) == 3
        assert err.speaker_labels == []

    def test_count_imbalance_reports_both_counts(self, stream):
        words = WORDS + [["and", 1.5, 1.7], ["then", 1.7, 2.0]]
        stream.write(results_update(words))
        stream.write(labels_update(WORDS, [1, 1, 1], last_final=False))
        (err,) = stream.close()
        assert err.kind == ErrorKind.mismatch
        assert "(5)" in str(err)
        assert "(3)" in str(err)
        assert len(err.timestamps) == 5
        assert len(err.speaker_labels) == 3

    def test_close_twice_checks_once(self, stream):
        stream.write(results_update(WORDS))
        assert len(stream.close()) == 1
        assert stream.close() == []
