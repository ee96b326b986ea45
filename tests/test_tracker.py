import threading

import pytest

from otaserve.tracker import DownloadProgress, DownloadTracker, StreamProgress


def test_record_upserts():
	tracker = DownloadTracker()
	tracker.recordProgress("app.ipa", 100, 1000)
	tracker.recordProgress("app.ipa", 400, 1000)
	tracker.recordProgress("Info.plist", 10, 10)
	assert tracker.get("app.ipa") == DownloadProgress(400, 1000)
	assert tracker.get("Info.plist").isComplete
	assert tracker.get("missing") is None
	assert sorted(tracker) == ["Info.plist", "app.ipa"]
	assert len(tracker) == 2
	tracker.clear()
	assert "app.ipa" not in tracker


def test_record_rejects_invalid():
	tracker = DownloadTracker()
	with pytest.raises(ValueError):
		tracker.recordProgress("app.ipa", 11, 10)
	with pytest.raises(ValueError):
		tracker.recordProgress("app.ipa", -1, 10)
	assert len(tracker) == 0


def test_listeners_are_notified_and_isolated():
	tracker = DownloadTracker()
	updates: list[tuple[str, int, int]] = []

	def failing(name: str, sent: int, total: int) -> None:
		raise RuntimeError("listener failure")

	tracker.onProgress(failing).onProgress(lambda *args: updates.append(args))
	tracker.recordProgress("app.ipa", 5, 10)
	assert updates == [("app.ipa", 5, 10)]
	assert tracker.get("app.ipa") == DownloadProgress(5, 10)


def test_stream_progress_is_monotonic():
	tracker = DownloadTracker()
	progress = StreamProgress(tracker, "app.ipa", 10)
	progress.advance(4)
	progress.advance(6)
	assert tracker.get("app.ipa") == DownloadProgress(10, 10)
	with pytest.raises(ValueError):
		progress.advance(1)
	with pytest.raises(ValueError):
		StreamProgress(tracker, "app.ipa", 10).advance(-1)


def test_concurrent_updates():
	tracker = DownloadTracker()

	def download(name: str) -> None:
		progress = StreamProgress(tracker, name, 1000)
		for _ in range(1000):
			progress.advance(1)

	threads = [threading.Thread(target=download, args=(f"f{i}",)) for i in range(8)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()
	assert all(tracker.get(f"f{i}") == DownloadProgress(1000, 1000) for i in range(8))


# EOF
