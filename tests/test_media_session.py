import pytest

from interview_coach.errors import MediaAccessDenied, MediaAccessUnavailable
from interview_coach.infrastructure.media import MediaCaptureSession, MediaDevices
from interview_coach.interview.testing import FakeMediaDevices


def test_acquire_opens_requested_tracks():
    devices = FakeMediaDevices()
    session = MediaCaptureSession(devices)

    stream = session.acquire(video=True, audio=True)

    assert session.is_active
    assert len(stream.video_tracks()) == 1
    assert len(stream.audio_tracks()) == 1
    assert session.video_enabled and session.audio_enabled


def test_acquire_twice_reuses_stream():
    devices = FakeMediaDevices()
    session = MediaCaptureSession(devices)

    first = session.acquire()
    second = session.acquire()

    assert first is second
    assert len(devices.requests) == 1


def test_audio_only_request():
    devices = FakeMediaDevices()
    session = MediaCaptureSession(devices)

    stream = session.acquire(video=False, audio=True)

    assert stream.video_tracks() == []
    assert not session.video_enabled
    assert devices.requests == [{"video": False, "audio": True}]


def test_nothing_requested_is_rejected():
    with pytest.raises(ValueError):
        MediaCaptureSession(FakeMediaDevices()).acquire(video=False, audio=False)


@pytest.mark.parametrize("mode,error", [("deny", MediaAccessDenied), ("unavailable", MediaAccessUnavailable)])
def test_access_failures_propagate_and_are_recorded(mode, error):
    session = MediaCaptureSession(FakeMediaDevices(mode))

    with pytest.raises(error):
        session.acquire()

    assert not session.is_active
    assert session.error


def test_os_errors_become_unavailable():

    class BrokenDevices(MediaDevices):
        def get_user_media(self, video, audio):
            raise OSError("device busy")

    session = MediaCaptureSession(BrokenDevices())
    with pytest.raises(MediaAccessUnavailable):
        session.acquire()
    assert "device busy" in session.error


def test_mute_flips_tracks_without_reacquiring():
    devices = FakeMediaDevices()
    session = MediaCaptureSession(devices)
    stream = session.acquire()

    assert session.toggle_video() is False
    assert session.toggle_audio() is False
    assert not stream.video_tracks()[0].enabled
    assert not stream.audio_tracks()[0].enabled

    session.set_video_enabled(True)
    assert stream.video_tracks()[0].enabled
    assert len(devices.requests) == 1


def test_mute_without_stream_is_a_no_op():
    session = MediaCaptureSession(FakeMediaDevices())
    session.set_audio_enabled(False)
    assert not session.audio_enabled


def test_release_stops_every_track_once():
    devices = FakeMediaDevices()
    session = MediaCaptureSession(devices)
    stream = session.acquire()

    session.release()
    session.release()

    assert not session.is_active
    assert not stream.active
    assert [t.close_count for t in stream.tracks] == [1, 1]


def test_preview_sink_sees_stream_and_release():
    session = MediaCaptureSession(FakeMediaDevices())
    seen = []
    session.attach_preview(seen.append)

    stream = session.acquire()
    session.release()

    assert seen == [None, stream, None]
