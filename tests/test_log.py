from unittest import TestCase, main
from mock import MagicMock
from parameterized import parameterized
from epubgen.log import Custom, Default, Silent, make_sink, LOG, WARN


class TestSinks(TestCase):
    @parameterized.expand([
        ["false", False, Silent],
        ["none", None, Silent],
        ["true", True, Default],
        ["callable", print, Custom],
    ])
    def test_make_sink(self, _name, verbose, expected):
        self.assertIsInstance(make_sink(verbose), expected)

    def test_sink_is_kept(self):
        sink = Silent()
        self.assertIs(make_sink(sink), sink)

    def test_custom(self):
        callback = MagicMock()
        sink = Custom(callback)
        sink.log("Fetched", 3)
        sink.warn("Ignoring")
        callback.assert_any_call(LOG, "Fetched", 3)
        callback.assert_any_call(WARN, "Ignoring")

    def test_default(self):
        sink = Default()
        with self.assertLogs("epubgen", level="INFO") as logs:
            sink.log("Fetched", 3)
            sink.warn("Ignoring")

        self.assertEqual(logs.output, [
            "INFO:epubgen:Fetched 3",
            "WARNING:epubgen:Ignoring",
        ])


if __name__ == '__main__':
    main()
