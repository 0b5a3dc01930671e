"""

App Audio Switcher

Lets buttons and dials on a control surface move the audio of the focused application to
another output device. The audio routing itself is done by a worker executable; this package
starts the worker, talks to it and keeps the actions up to date.

- Conduit: abstraction of a bi-directional channel. An asyncio reader and writer.
    ProcessConduit (worker stdout/stdin), SocketConduit (the worker control port)
- Connector: opens and closes a conduit to an endpoint, firing connected/disconnected events.
    ProcessConnector starts the worker and waits for its ready line. SocketConnector connects
    to the control port. Concurrent connect() calls share one attempt.
- Session: the one worker process and the one connection shared by every action. Reads
  messages from the connection, frames them (MessageFramer) and routes them (MessageRouter)
  into the DeviceFocusStore. Polls the focused process periodically.
- DeviceFocusStore: the device list and the focused process. Fires FocusChangedEvent only for
  meaningful changes, so stale or repeated worker replies do not reach the actions.
- SwitchAppAudioAction: the host callbacks. Each visible action is an ActionBinding that keeps
  its device selection in the host settings and renders the focus as title and dial feedback.


Wiring it up

    settings = load_settings()
    session = Session.from_settings(settings)
    action = SwitchAppAudioAction(session, inspector)

and then forward host events to action.on_appear(), on_dial_rotate() etc.


## Threading

Everything runs on one asyncio event loop. There are no locks: an operation can only be
interleaved with another at an await. ensure_connected() and connect() check for an existing
handle, or an attempt in flight, before doing anything, so actions appearing together
still start one worker and open one connection.

The worker replies carry no request id. A reply being handled may answer an older request, which
is harmless because the store ignores focus updates that do not change anything.

"""
