"""Audio pipeline package.

Modules follow the path a clip takes through the service:

1. `ingestion` – validate an upload candidate's media type and size.
2. `upload` – write the blob to the object store, then the attachment row.
3. `recording` – live capture session (start/stop/discard/save) fed by `capture`.
4. `playback` – transport control and progress for an attached clip.

`clock` formats elapsed and playback times for every view.
"""

from .capture import ChunkFeed, ClientMicrophone
from .clock import format_clock
from .ingestion import (
    ACCEPTED_CONTENT_TYPES,
    MAX_UPLOAD_BYTES,
    read_candidate,
    resolve_content_type,
    validate_candidate,
)
from .playback import (
    DetachedTransport,
    PlaybackController,
    PlayerSnapshot,
    initial_player_snapshot,
)
from .recording import IntervalTimer, RecordingController
from .types import RecordingState, UploadCandidate
from .upload import UploadController

__all__ = [
    "ACCEPTED_CONTENT_TYPES",
    "MAX_UPLOAD_BYTES",
    "ChunkFeed",
    "ClientMicrophone",
    "DetachedTransport",
    "IntervalTimer",
    "PlaybackController",
    "PlayerSnapshot",
    "RecordingController",
    "RecordingState",
    "UploadCandidate",
    "UploadController",
    "format_clock",
    "initial_player_snapshot",
    "read_candidate",
    "resolve_content_type",
    "validate_candidate",
]
