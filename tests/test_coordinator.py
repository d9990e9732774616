import io
import unittest

from socialpulse.analysis.tags import TagExtractor
from socialpulse.analysis.vocabulary import VocabularyIndex
from socialpulse.errors import CallerError, LoadError, MalformedRecord, StreamFault
from socialpulse.ingestion.record_types import Record
from socialpulse.ingestion.suppliers import JsonLinesSupplier
from socialpulse.stream.coordinator import CoordinatorState, StreamCoordinator


def _ready_coordinator():
    coord = StreamCoordinator(VocabularyIndex(), TagExtractor())
    coord.load_vocabulary(io.StringIO("cat\nsat\nmat\ngreat\ncheck\nexample"), io.StringIO("the\na"))
    return coord


class _FlakySupplier:
    """Raises once on the second pull, then keeps going."""

    def __init__(self, items):
        self.items = list(items)
        self.pulls = 0

    def __iter__(self):
        return self

    def __next__(self):
        self.pulls += 1
        if self.pulls == 2:
            raise ConnectionError("socket closed")
        if not self.items:
            raise StopIteration
        return self.items.pop(0)


class TestStreamCoordinator(unittest.TestCase):
    def test_idle_until_both_lists_loaded(self):
        vocab = VocabularyIndex()
        coord = StreamCoordinator(vocab, TagExtractor())
        self.assertEqual(coord.state, CoordinatorState.IDLE)
        with self.assertRaises(CallerError):
            coord.process(Record(text="cat"))
        with self.assertRaises(CallerError):
            coord.consume([])
        vocab.load_terms(io.StringIO("cat"))
        self.assertEqual(coord.state, CoordinatorState.IDLE)
        vocab.load_stopwords(io.StringIO("the"))
        self.assertEqual(coord.state, CoordinatorState.READY)

    def test_process_strips_specials_before_tokenizing(self):
        coord = _ready_coordinator()
        seen = []
        result = coord.process(
            Record(text="Check https://example.com/x?y=1 #Foo #foo @bar great #cat"),
            observer=lambda rec, tags, counts: seen.append((rec, tags, counts)),
        )
        self.assertEqual(result.tags, ["Foo", "foo", "cat"])
        self.assertEqual(result.token_counts, {"check": 1, "great": 1})
        # "cat" only appeared as a tag, "example" only inside the URL
        self.assertEqual(coord.vocabulary.count("cat"), 0)
        self.assertEqual(coord.vocabulary.count("example"), 0)
        self.assertEqual(coord.tag_extractor.snapshot(), [("Foo", 2), ("cat", 1)])
        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0][1], ["Foo", "foo", "cat"])

    def test_extended_body_and_tags_preferred(self):
        coord = _ready_coordinator()
        record = Record(
            text="The cat",
            full_text="The cat sat on a mat #Pets",
            tags=[],
            full_tags=["Pets"],
            truncated=True,
        )
        result = coord.process(record)
        self.assertEqual(result.token_counts, {"cat": 1, "sat": 1, "mat": 1})
        self.assertEqual(result.tags, ["Pets"])

    def test_consume_dicts_in_order(self):
        coord = _ready_coordinator()
        order = []
        n = coord.consume(
            [{"text": "cat"}, {"text": "cat mat"}],
            observer=lambda rec, tags, counts: order.append(dict(counts)),
        )
        self.assertEqual(n, 2)
        self.assertEqual(order, [{"cat": 1}, {"cat": 2, "mat": 1}])
        self.assertEqual(coord.processed_count, 2)

    def test_supplier_error_goes_to_fault_handler(self):
        coord = _ready_coordinator()
        faults = []
        coord.set_fault_handler(faults.append)
        n = coord.consume(_FlakySupplier([Record(text="cat"), Record(text="mat")]))
        self.assertEqual(n, 2)
        self.assertEqual(len(faults), 1)
        self.assertIsInstance(faults[0], StreamFault)
        self.assertIsInstance(faults[0].__cause__, ConnectionError)

    def test_supplier_error_without_handler_is_fatal(self):
        coord = _ready_coordinator()
        with self.assertRaises(StreamFault):
            coord.consume(_FlakySupplier([Record(text="cat"), Record(text="mat")]))
        self.assertEqual(coord.vocabulary.count("cat"), 1)
        self.assertEqual(coord.vocabulary.count("mat"), 0)

    def test_malformed_payload_is_a_stream_fault(self):
        coord = _ready_coordinator()
        faults = []
        coord.set_fault_handler(faults.append)
        self.assertEqual(coord.consume(["not a dict", {"text": "cat"}]), 1)
        self.assertEqual(len(faults), 1)

    def test_malformed_jsonl_line_does_not_end_stream(self):
        coord = _ready_coordinator()
        faults = []
        coord.set_fault_handler(faults.append)
        src = io.StringIO('{"text": "cat"}\n{broken\n[1]\n{"text": "mat"}\n')
        self.assertEqual(coord.consume(JsonLinesSupplier(src)), 2)
        self.assertEqual(coord.vocabulary.count("mat"), 1)
        self.assertEqual(len(faults), 2)
        self.assertTrue(all(isinstance(f.__cause__, MalformedRecord) for f in faults))

    def test_malformed_jsonl_line_without_handler_is_fatal(self):
        coord = _ready_coordinator()
        src = io.StringIO('{"text": "cat"}\n{broken\n{"text": "mat"}\n')
        with self.assertRaises(StreamFault):
            coord.consume(JsonLinesSupplier(src))
        self.assertEqual(coord.vocabulary.count("mat"), 0)

    def test_failed_reload_keeps_previous_vocabulary(self):
        coord = _ready_coordinator()
        coord.vocabulary.increment("cat")
        with self.assertRaises(LoadError):
            coord.load_vocabulary(io.StringIO("dog"), io.StringIO(""))
        self.assertEqual(coord.vocabulary.count("cat"), 1)
        self.assertIsNone(coord.vocabulary.count("dog"))
        self.assertTrue(coord.vocabulary.is_stopword("the"))
        with self.assertRaises(LoadError):
            coord.load_vocabulary(io.StringIO(""), io.StringIO("an"))
        self.assertFalse(coord.vocabulary.is_stopword("an"))

    def test_observer_errors_propagate(self):
        coord = _ready_coordinator()
        coord.set_fault_handler(lambda fault: None)

        def boom(rec, tags, counts):
            raise RuntimeError("observer failed")

        with self.assertRaises(RuntimeError):
            coord.consume([Record(text="cat"), Record(text="mat")], observer=boom)
        self.assertEqual(coord.vocabulary.count("mat"), 0)

    def test_non_callable_hooks_rejected(self):
        coord = _ready_coordinator()
        with self.assertRaises(CallerError):
            coord.set_fault_handler("log")
        with self.assertRaises(CallerError):
            coord.set_observer(42)
        with self.assertRaises(CallerError):
            coord.process(Record(text="cat"), observer="print")

    def test_request_stop(self):
        coord = _ready_coordinator()

        def stop_after_first(rec, tags, counts):
            coord.request_stop()

        n = coord.consume([Record(text="cat"), Record(text="mat")], observer=stop_after_first)
        self.assertEqual(n, 1)


if __name__ == "__main__":
    unittest.main()
