import time

from folio.errors import ProblemKind
from folio.watch import ContentWatcher, _ChangeHandler, _report

ABOUT = "---\ntitle: About\npermalink: /about/\n---\nHi.\n"


class DummyEvent:
    def __init__(self, path, is_directory=False):
        self.src_path = path
        self.is_directory = is_directory


def create_project(root):
    site = root / "site"
    (site / "_posts").mkdir(parents=True)
    (site / "about.md").write_text(ABOUT, encoding="utf-8")
    return site


def wait_for(predicate, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def recording_watcher(root, **kwargs):
    calls = []
    watcher = ContentWatcher(
        root, on_reload=lambda collection, error: calls.append((collection, error)), **kwargs
    )
    return watcher, calls


def test_reload_swaps_in_fresh_collection(tmp_path):
    site = create_project(tmp_path)
    watcher, calls = recording_watcher(tmp_path, debounce_seconds=0)

    assert watcher.reload(force=True) is True
    first = watcher.collection
    assert [p.title for p in first.pages()] == ["About"]
    assert calls == [(first, None)]

    (site / "contact.md").write_text("# Contact\n\nMail me.", encoding="utf-8")
    assert watcher.reload() is True
    second = watcher.collection
    assert second is not first
    assert [p.title for p in second.pages()] == ["About", "Contact"]
    assert [p.title for p in first.pages()] == ["About"]
    assert watcher.last_error is None


def test_failed_reload_keeps_previous_collection(tmp_path):
    site = create_project(tmp_path)
    watcher, calls = recording_watcher(tmp_path, debounce_seconds=0)
    watcher.reload(force=True)
    good = watcher.collection

    (site / "_posts" / "undated.md").write_text("---\ntitle: U\n---\nBody\n", encoding="utf-8")
    assert watcher.reload() is True
    assert watcher.collection is good
    assert watcher.last_error is not None
    assert calls[-1][0] is None
    assert calls[-1][1].problems[0].kind is ProblemKind.MISSING_REQUIRED_FIELD


def test_reload_skips_when_nothing_changed(tmp_path):
    create_project(tmp_path)
    watcher, calls = recording_watcher(tmp_path, debounce_seconds=0)
    assert watcher.reload(force=True) is True
    assert watcher.reload() is False
    assert len(calls) == 1


def test_reload_debounces(tmp_path):
    site = create_project(tmp_path)
    watcher, calls = recording_watcher(tmp_path, debounce_seconds=60)
    watcher.reload(force=True)
    (site / "contact.md").write_text("# Contact\n\nMail me.", encoding="utf-8")
    assert watcher.reload() is False
    assert watcher.has_pending_reload
    assert watcher.reload(force=True) is True
    assert len(calls) == 2
    watcher.stop()
    assert not watcher.has_pending_reload


def test_change_during_debounce_is_reloaded_later(tmp_path):
    site = create_project(tmp_path)
    watcher, calls = recording_watcher(tmp_path, debounce_seconds=0.3)
    watcher.reload(force=True)
    (site / "contact.md").write_text("# Contact\n\nMail me.", encoding="utf-8")
    assert watcher.reload() is False
    assert watcher.reload() is False
    assert wait_for(lambda: len(calls) == 2)
    assert [p.title for p in watcher.collection.pages()] == ["About", "Contact"]
    assert not watcher.has_pending_reload


def test_change_during_reload_is_reloaded_later(tmp_path):
    create_project(tmp_path)
    watcher, calls = recording_watcher(tmp_path, debounce_seconds=0)
    watcher._rebuilding = True
    assert watcher.reload(force=True) is False
    assert calls == []
    assert watcher.has_pending_reload
    watcher._rebuilding = False
    assert wait_for(lambda: len(calls) == 1)
    assert [p.title for p in watcher.collection.pages()] == ["About"]


def test_reload_follows_content_dir_change(monkeypatch, tmp_path):
    create_project(tmp_path)
    scheduled = []

    class DummyObserver:
        def schedule(self, handler, path, recursive):
            scheduled.append(path)

        def unschedule_all(self):
            scheduled.clear()

        def start(self):
            pass

    monkeypatch.setattr("folio.watch.Observer", DummyObserver)
    watcher, calls = recording_watcher(tmp_path, debounce_seconds=0)
    watcher._start_watcher()
    watcher.reload(force=True)
    assert scheduled == [str(tmp_path / "site"), str(tmp_path)]

    other = tmp_path / "other"
    (other / "_posts").mkdir(parents=True)
    (other / "_posts" / "2022-11-14-x.md").write_text(
        "---\ntitle: X\n---\nSome Kotlin.\n", encoding="utf-8"
    )
    (tmp_path / "folio.yaml").write_text("content_dir: other\n", encoding="utf-8")
    assert watcher.reload() is True
    assert watcher.content_dir == other
    assert scheduled == [str(other), str(tmp_path)]
    assert [p.title for p in watcher.collection.posts()] == ["X"]

    (other / "about.md").write_text(ABOUT, encoding="utf-8")
    assert watcher.reload() is True
    assert [p.title for p in watcher.collection.pages()] == ["About"]
    assert any(str(path).startswith("other/") for path, _, _ in watcher._compute_signature())


def test_missing_content_dir_is_reported_not_raised(tmp_path):
    watcher, calls = recording_watcher(tmp_path, debounce_seconds=0)
    assert watcher.reload(force=True) is True
    assert watcher.collection is None
    problem = watcher.last_error.problems[0]
    assert problem.kind is ProblemKind.UNREADABLE_SOURCE
    assert calls[0][0] is None


def test_compute_signature_tracks_config_and_content(tmp_path):
    site = create_project(tmp_path)
    watcher = ContentWatcher(tmp_path)
    before = watcher._compute_signature()
    assert [entry[0] for entry in before] == ["site/about.md"]

    (tmp_path / "folio.yaml").write_text("timezone: UTC\n", encoding="utf-8")
    (site / "notes.md").write_text("# Notes\n\nSome.", encoding="utf-8")
    after = watcher._compute_signature()
    assert [entry[0] for entry in after] == ["folio.yaml", "site/about.md", "site/notes.md"]


def test_compute_signature_empty(tmp_path):
    watcher = ContentWatcher(tmp_path)
    assert watcher._compute_signature() == ()


def test_change_handler_filters_events(tmp_path):
    site = create_project(tmp_path)
    watcher = ContentWatcher(tmp_path)
    called = []
    watcher.reload = lambda force=False: called.append(force)
    handler = _ChangeHandler(watcher)

    handler.on_any_event(DummyEvent(str(site / "_posts"), is_directory=True))
    handler.on_any_event(DummyEvent(str(tmp_path / "README.md")))
    handler.on_any_event(DummyEvent(str(site / ".about.md.swp")))
    handler.on_any_event(DummyEvent(str(site / ".git" / "index")))
    assert called == []

    handler.on_any_event(DummyEvent(str(site / "about.md")))
    handler.on_any_event(DummyEvent(str(tmp_path / "folio.yaml")))
    handler.on_any_event(DummyEvent(str(site), is_directory=True))
    assert called == [False, False, False]


def test_start_watcher_and_stop(monkeypatch, tmp_path):
    create_project(tmp_path)
    watcher = ContentWatcher(tmp_path)
    scheduled = []

    class DummyObserver:
        def schedule(self, handler, path, recursive):
            scheduled.append((path, recursive))

        def start(self):
            scheduled.append(("started", True))

        def stop(self):
            scheduled.append(("stopped", False))

        def join(self):
            scheduled.append(("joined", False))

    monkeypatch.setattr("folio.watch.Observer", DummyObserver)
    watcher._start_watcher()
    assert scheduled[:2] == [(str(tmp_path / "site"), True), (str(tmp_path), False)]
    watcher.stop()
    assert scheduled[-2:] == [("stopped", False), ("joined", False)]
    assert watcher._observer is None
    watcher.stop()


def test_start_stops_on_interrupt(monkeypatch, tmp_path):
    create_project(tmp_path)
    watcher, calls = recording_watcher(tmp_path)
    events = []
    monkeypatch.setattr(watcher, "_start_watcher", lambda: events.append("watching"))
    monkeypatch.setattr(watcher, "stop", lambda: events.append("stopped"))

    def interrupt(seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr("folio.watch.time.sleep", interrupt)
    watcher.start()
    assert events == ["watching", "stopped"]
    assert len(calls) == 1


def test_report_output(tmp_path, capsys):
    create_project(tmp_path)
    watcher, _ = recording_watcher(tmp_path)
    watcher.reload(force=True)
    _report(watcher.collection, None)
    assert "Loaded 0 posts and 1 pages" in capsys.readouterr().out

    (tmp_path / "site" / "bad.md").write_text("---\ntitle: [x\n---\nBody", encoding="utf-8")
    watcher.reload(force=True)
    _report(None, watcher.last_error)
    err = capsys.readouterr().err
    assert "Reload failed" in err
    assert "bad.md" in err
