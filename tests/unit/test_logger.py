"""Unit tests for the NetworkLogger lifecycle and request log."""

import logging
import threading

import pytest

from nog import (
    CallbackDisplay,
    ConsoleLogger,
    Dispatcher,
    InterceptionHook,
    LoggerSettings,
    NetworkLogger,
    NullDisplay,
    Rejected,
    Request,
    RequestListDisplay,
    http_only_request_filter,
)
from nog.logger import ALREADY_STARTED, ALREADY_STOPPED


class CountingHook(InterceptionHook):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.installs = 0
        self.uninstalls = 0

    def install(self):
        installed = super().install()
        self.installs += int(installed)
        return installed

    def uninstall(self):
        uninstalled = super().uninstall()
        self.uninstalls += int(uninstalled)
        return uninstalled


@pytest.fixture
def counting_hook(dispatcher, chain):
    return CountingHook(dispatcher, chain=chain)


@pytest.fixture
def hooked_logger(counting_hook, console):
    logger = NetworkLogger(
        [http_only_request_filter],
        hook=counting_hook,
        console=console,
        display=NullDisplay(),
    )
    yield logger
    logger.close()


def urls(logger):
    return [logged.url for logged in logger.requests]


class TestLifecycle:
    def test_on_init_is_not_logging(self, network_logger):
        assert network_logger.is_logging is False
        assert network_logger.request_count == 0
        assert network_logger.requests == ()

    def test_start_sets_is_logging(self, network_logger):
        network_logger.start()
        assert network_logger.is_logging is True

    def test_start_installs_hook_and_subscribes(self, network_logger, dispatcher, chain):
        network_logger.start()
        assert network_logger.hook.is_installed
        assert chain.contains(network_logger.hook)
        assert dispatcher.subscriber_count == 1

    def test_start_twice_installs_once(self, hooked_logger, counting_hook):
        hooked_logger.start()
        hooked_logger.start()
        assert hooked_logger.is_logging is True
        assert counting_hook.installs == 1

    def test_start_when_started_logs_diagnostic(self, network_logger, caplog):
        caplog.set_level(logging.INFO, logger="nog.console")
        network_logger.start()
        network_logger.start()
        assert caplog.records[-1].getMessage() == f"[Nog] {ALREADY_STARTED}"

    def test_stop_sets_is_logging_false(self, network_logger, dispatcher, chain):
        network_logger.start()
        network_logger.stop()
        assert network_logger.is_logging is False
        assert not chain.contains(network_logger.hook)
        assert dispatcher.subscriber_count == 0

    def test_stop_when_stopped_logs_diagnostic(self, network_logger, caplog):
        caplog.set_level(logging.INFO, logger="nog.console")
        network_logger.start()
        network_logger.stop()
        network_logger.stop()
        assert caplog.records[-1].getMessage() == f"[Nog] {ALREADY_STOPPED}"

    def test_stop_uninstalls_once(self, hooked_logger, counting_hook):
        hooked_logger.start()
        hooked_logger.stop()
        hooked_logger.stop()
        assert counting_hook.uninstalls == 1

    def test_toggle_cycles_state(self, network_logger):
        network_logger.toggle()
        assert network_logger.is_logging is True
        network_logger.toggle()
        assert network_logger.is_logging is False
        network_logger.toggle()
        assert network_logger.is_logging is True

    def test_verbose_off_suppresses_diagnostics(self, network_logger, caplog):
        caplog.set_level(logging.INFO, logger="nog.console")
        network_logger.verbose = False
        network_logger.start()
        network_logger.start()
        assert not [r for r in caplog.records if r.name == "nog.console"]

    def test_close_unsubscribes_even_when_stopped(self, network_logger, dispatcher):
        network_logger.start()
        network_logger.close()
        assert dispatcher.subscriber_count == 0
        assert network_logger.is_logging is False
        network_logger.close()

    def test_context_manager_starts_and_closes(self, dispatcher, chain):
        with NetworkLogger(dispatcher=dispatcher, chain=chain, display=NullDisplay()) as logger:
            assert logger.is_logging
            assert dispatcher.subscriber_count == 1
        assert not logger.is_logging
        assert dispatcher.subscriber_count == 0
        assert len(chain) == 0


class TestLogRequest:
    def test_stores_requests_most_recent_first(self, network_logger):
        network_logger.start()
        for url in ("https://github.com", "https://bitbucket.org", "https://gitlab.com"):
            assert network_logger.log_request(Request.build(url))

        assert urls(network_logger) == [
            "https://gitlab.com",
            "https://bitbucket.org",
            "https://github.com",
        ]
        assert [r.sequence_id for r in network_logger.requests] == [3, 2, 1]
        assert network_logger.request_count == 3

    def test_when_not_logging_rejects_without_side_effects(self, network_logger):
        result = network_logger.log_request(Request.build("https://github.com"))
        assert not result
        assert result.rejected is Rejected.NOT_LOGGING
        assert network_logger.requests == ()
        assert network_logger.request_count == 0

    def test_after_stop_rejects_not_logging(self, network_logger):
        network_logger.start()
        network_logger.log_request(Request.build("https://github.com"))
        network_logger.log_request(Request.build("https://bitbucket.org"))
        network_logger.stop()
        result = network_logger.log_request(Request.build("https://gitlab.com"))

        assert result.rejected is Rejected.NOT_LOGGING
        assert urls(network_logger) == ["https://bitbucket.org", "https://github.com"]

    def test_default_chain_filters_non_http(self, network_logger):
        network_logger.start()
        network_logger.log_request(Request.build("https://a.com"))
        rejected = network_logger.log_request(Request.build("ftp://b.com"))
        network_logger.log_request(Request.build("http://c.com"))

        assert rejected.rejected is Rejected.FILTERED_OUT
        assert [(r.sequence_id, r.url) for r in network_logger.requests] == [
            (2, "http://c.com"),
            (1, "https://a.com"),
        ]

    @pytest.mark.parametrize("url", ["ftp://b.com", "file:///etc/hosts", "no-scheme"])
    def test_filtered_out_leaves_state_untouched(self, network_logger, url):
        network_logger.start()
        result = network_logger.log_request(Request.build(url))
        assert result.rejected is Rejected.FILTERED_OUT
        assert network_logger.request_count == 0
        assert network_logger.requests == ()

    def test_custom_filter_applies_after_http_only(self, dispatcher, chain):
        logger = NetworkLogger(
            custom_filter=lambda request: "github" in request.url,
            dispatcher=dispatcher,
            chain=chain,
            display=NullDisplay(),
        )
        logger.start()
        logger.log_request(Request.build("https://github.com"))
        logger.log_request(Request.build("https://gitlab.com"))
        assert urls(logger) == ["https://github.com"]
        logger.close()

    def test_empty_filter_list_allows_all(self, dispatcher, chain):
        logger = NetworkLogger([], dispatcher=dispatcher, chain=chain, display=NullDisplay())
        logger.start()
        assert logger.log_request(Request.build("ftp://b.com"))
        logger.close()

    def test_logged_request_snapshot(self, network_logger):
        network_logger.start()
        request = Request.build(
            "https://api.example.com/items",
            method="post",
            headers={"Content-Type": "application/json"},
            body=b'{"a": 1}',
        )
        logged = network_logger.log_request(request).logged

        assert logged.sequence_id == 1
        assert logged.method == "POST"
        assert logged.host == "api.example.com"
        assert logged.scheme == "https"
        assert logged.header("content-type") == "application/json"
        assert logged.body == b'{"a": 1}'
        with pytest.raises(Exception):
            logged.url = "https://elsewhere.com"

    def test_mock_request_logs_default_url(self, network_logger):
        network_logger.start()
        assert network_logger.mock_request()
        assert urls(network_logger) == ["https://hello.world"]


class TestClear:
    def test_clear_removes_all_stored_requests(self, network_logger):
        network_logger.start()
        network_logger.log_request(Request.build("https://github.com"))
        network_logger.log_request(Request.build("https://bitbucket.org"))
        network_logger.clear()
        assert network_logger.requests == ()

    def test_clear_keeps_request_count(self, network_logger):
        network_logger.start()
        network_logger.log_request(Request.build("https://github.com"))
        network_logger.log_request(Request.build("https://bitbucket.org"))
        network_logger.clear()
        logged = network_logger.log_request(Request.build("https://gitlab.com")).logged

        assert network_logger.request_count == 3
        assert logged.sequence_id == 3

    def test_request_count_persists_across_stop_start(self, network_logger):
        network_logger.start()
        network_logger.log_request(Request.build("https://github.com"))
        network_logger.stop()
        network_logger.start()
        logged = network_logger.log_request(Request.build("https://gitlab.com")).logged
        assert logged.sequence_id == 2


class TestSinks:
    def test_display_receives_each_logged_request(self, dispatcher, chain, make_recorder):
        recorder = make_recorder()
        logger = NetworkLogger(dispatcher=dispatcher, chain=chain, display=CallbackDisplay(recorder))
        logger.start()
        logger.log_request(Request.build("https://github.com"))
        logger.log_request(Request.build("https://gitlab.com"))
        assert [logged.sequence_id for logged in recorder.calls] == [1, 2]
        logger.close()

    def test_after_log_request_called(self, network_logger, make_recorder):
        recorder = make_recorder()
        network_logger.after_log_request = recorder
        network_logger.start()
        network_logger.log_request(Request.build("https://github.com"))
        assert [logged.url for logged in recorder.calls] == ["https://github.com"]

    def test_failing_display_does_not_corrupt_state(self, dispatcher, chain, make_recorder, caplog):
        after = make_recorder()
        logger = NetworkLogger(
            dispatcher=dispatcher,
            chain=chain,
            display=CallbackDisplay(make_recorder(fail=True)),
            after_log_request=after,
        )
        logger.start()
        result = logger.log_request(Request.build("https://github.com"))

        assert result
        assert logger.request_count == 1
        assert len(after.calls) == 1
        assert "Display failed" in caplog.text
        logger.close()

    def test_attach_display_replaces_primary_sink(self, network_logger, make_recorder):
        first, second = make_recorder(), make_recorder()
        network_logger.attach_display(CallbackDisplay(first))
        network_logger.attach_display(CallbackDisplay(second))
        network_logger.start()
        network_logger.log_request(Request.build("https://github.com"))
        assert first.calls == []
        assert len(second.calls) == 1

    def test_attach_list_display_wires_toggle(self, network_logger):
        display = RequestListDisplay()
        network_logger.attach_display(display)
        assert display.is_logging() is False
        display.toggle_logging()
        assert network_logger.is_logging is True
        assert display.is_logging() is True

    def test_default_display_writes_console_line(self, dispatcher, chain, caplog):
        caplog.set_level(logging.INFO, logger="nog.console")
        logger = NetworkLogger(dispatcher=dispatcher, chain=chain)
        logger.start()
        logger.log_request(Request.build("https://github.com"))
        assert "[Nog] Request #1: GET https://github.com" in caplog.text
        logger.close()


class TestConcurrency:
    def test_concurrent_log_requests_get_unique_ordered_ids(self, network_logger):
        network_logger.start()
        barrier = threading.Barrier(8)

        def worker(n):
            barrier.wait()
            for i in range(25):
                network_logger.log_request(Request.build(f"https://host{n}.com/{i}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        ids = [logged.sequence_id for logged in network_logger.requests]
        assert ids == list(range(200, 0, -1))

    def test_no_request_logged_after_stop_returns(self, network_logger):
        network_logger.start()
        network_logger.stop()
        results = [network_logger.log_request(Request.build("https://a.com")) for _ in range(10)]
        assert all(result.rejected is Rejected.NOT_LOGGING for result in results)


class TestSharedChain:
    def test_loggers_on_separate_dispatchers_each_log_the_request(self, chain):
        bus_a, bus_b = Dispatcher(), Dispatcher()
        first = NetworkLogger(dispatcher=bus_a, chain=chain, display=NullDisplay())
        second = NetworkLogger(dispatcher=bus_b, chain=chain, display=NullDisplay())
        first.start()
        second.start()

        chain.process(Request.build("https://x.com", headers={"Accept": "*/*"}))
        bus_a.flush(timeout=5)
        bus_b.flush(timeout=5)

        assert [logged.url for logged in first.requests] == ["https://x.com"]
        assert [logged.url for logged in second.requests] == ["https://x.com"]
        for logger, bus in ((first, bus_a), (second, bus_b)):
            logger.close()
            bus.close()

    def test_subscribes_before_installing_hook(self, dispatcher, chain):
        class RecordingHook(InterceptionHook):
            subscribers_at_install = None

            def install(self):
                self.subscribers_at_install = self.dispatcher.subscriber_count
                return super().install()

        hook = RecordingHook(dispatcher, chain=chain)
        logger = NetworkLogger(hook=hook, display=NullDisplay())
        logger.start()
        assert hook.subscribers_at_install == 1
        logger.close()


class TestFromSettings:
    def test_builds_filters_and_console_from_settings(self, dispatcher, chain, caplog):
        caplog.set_level(logging.INFO, logger="nog.console")
        settings = LoggerSettings(ignored_hosts=["tracking.example.com"], console_tag="Net")
        logger = NetworkLogger.from_settings(
            settings, dispatcher=dispatcher, chain=chain, display=NullDisplay()
        )
        logger.start()
        logger.start()
        assert not logger.log_request(Request.build("https://tracking.example.com/p"))
        assert logger.log_request(Request.build("https://api.example.com/p"))
        assert not logger.log_request(Request.build("ftp://api.example.com/p"))
        assert f"[Net] {ALREADY_STARTED}" in caplog.text
        logger.close()

    def test_settings_verbose_false_silences_console(self, dispatcher, chain):
        logger = NetworkLogger.from_settings(
            LoggerSettings(verbose=False), dispatcher=dispatcher, chain=chain
        )
        assert logger.verbose is False
        assert isinstance(logger.console, ConsoleLogger)
        logger.close()
