"""File lifecycle finite state machine for File API uploads.

Each uploaded resource gets its own FSM instance.  The FSM only tracks the
client-side protocol (upload, poll, terminal outcome, deletion); the remote
processing state is never advanced locally and lives on
:attr:`UploadedFile.state`.
"""

from __future__ import annotations

from statemachine import State, StateMachine


class FileLifecycleSM(StateMachine):
    """Lifecycle of one uploaded file.

    States:
        uploading  -- Upload API call in flight.
        polling    -- Upload accepted, waiting for the server to finish processing.
        active     -- Server reports the file usable.
        failed     -- Server rejected the file, or its status could not be fetched.
        timed_out  -- Gave up waiting after the polling bound.
        cancelled  -- Caller gave up waiting.
        deleted    -- Delete issued; no further calls against this resource.
    """

    uploading = State("uploading", initial=True, value="uploading")
    polling = State("polling", value="polling")
    active = State("active", value="active")
    failed = State("failed", value="failed")
    timed_out = State("timed_out", value="timed_out")
    cancelled = State("cancelled", value="cancelled")
    deleted = State("deleted", final=True, value="deleted")

    start_polling = uploading.to(polling)
    activate = polling.to(active)
    fail = polling.to(failed)
    time_out = polling.to(timed_out)
    abort = polling.to(cancelled)
    remove = (
        active.to(deleted)
        | failed.to(deleted)
        | timed_out.to(deleted)
        | cancelled.to(deleted)
    )


def create_fsm(current_state: str = "uploading") -> FileLifecycleSM:
    """Create an FSM instance at the given state.

    Args:
        current_state: One of 'uploading', 'polling', 'active', 'failed',
            'timed_out', 'cancelled', 'deleted'.

    Returns:
        A FileLifecycleSM positioned at *current_state*.
    """
    return FileLifecycleSM(start_value=current_state)
