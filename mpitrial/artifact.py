# -*- test-case-name: mpitrial.test.test_artifact -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Naming, encoding and decoding of artifacts, the files in which workers leave
their recorded events.

An artifact is a sequence of AMP boxes: a L{LogHeader} giving the format
version, one box per event, and a L{LogTrailer} counting the events.  A
missing trailer means the worker did not finish writing.
"""

from twisted.protocols.amp import COMMAND, MAX_VALUE_LENGTH
from twisted.protocols.amp import parseString
from twisted.python.filepath import FilePath

from mpitrial import eventcommands
from mpitrial.description import Description
from mpitrial.error import ArtifactCorrupt, ArtifactMissing, ReplayError
from mpitrial.error import RecordedError
from mpitrial.events import Event, EventKind, FAILURE_KINDS


FORMAT_VERSION = 1

_commands = {
    EventKind.SUITE_STARTED: eventcommands.SuiteStarted,
    EventKind.SUITE_FINISHED: eventcommands.SuiteFinished,
    EventKind.TEST_STARTED: eventcommands.TestStarted,
    EventKind.TEST_FINISHED: eventcommands.TestFinished,
    EventKind.TEST_IGNORED: eventcommands.TestIgnored,
    EventKind.TEST_FAILED: eventcommands.TestFailed,
    EventKind.ASSUMPTION_FAILED: eventcommands.TestAssumptionFailed,
    }

_kinds = dict((command.commandName, kind)
              for (kind, command) in _commands.items())



def artifactName(suiteName, workerIndex, configurationIndex=None):
    """
    Return the file name of the artifact of worker C{workerIndex}:
    C{suite_worker}, or C{suite_configuration_worker} for one configuration
    of a parameterized suite.
    """
    if configurationIndex is None:
        return "%s_%d" % (suiteName, workerIndex)
    return "%s_%d_%d" % (suiteName, configurationIndex, workerIndex)



def artifactPath(directory, suiteName, workerIndex, configurationIndex=None):
    """
    Return the L{FilePath} of an artifact inside C{directory}, the working
    directory when C{directory} is C{None}.
    """
    if directory is None:
        directory = FilePath(".")
    elif not isinstance(directory, FilePath):
        directory = FilePath(directory)
    return directory.child(
        artifactName(suiteName, workerIndex, configurationIndex))



def _truncate(text):
    """
    Cut C{text} so that its UTF-8 encoding fits in one AMP value.
    """
    encoded = text.encode("utf-8")
    if len(encoded) <= MAX_VALUE_LENGTH:
        return text
    return encoded[:MAX_VALUE_LENGTH].decode("utf-8", "ignore")



def _box(command, **arguments):
    box = command.makeArguments(arguments, None)
    box[COMMAND] = command.commandName
    return box



def encodeEvent(event):
    """
    Return the L{AmpBox} recording C{event}.
    """
    description = event.description
    arguments = dict(suiteName=description.suiteName,
                     methodName=description.methodName,
                     configuration=description.configuration,
                     workerIndex=description.workerIndex)
    if event.kind in FAILURE_KINDS:
        arguments['error'] = _truncate(event.detail)
    return _box(_commands[event.kind], **arguments)



def decodeEvent(box):
    """
    Return the L{Event} recorded in C{box}.

    @raise ReplayError: if the box records an unknown kind of event.
    """
    name = box.get(COMMAND)
    if name not in _kinds:
        raise ReplayError("Unknown event kind %r" % (name,))
    kind = _kinds[name]
    arguments = _commands[kind].parseArguments(box, None)
    description = Description(arguments['suiteName'],
                              arguments['methodName'],
                              arguments['configuration'],
                              arguments['workerIndex'])
    error = None
    if kind in FAILURE_KINDS:
        error = RecordedError(arguments['error'])
    return Event(kind, description, error)



def serialize(events):
    """
    Encode a sequence of events as the content of an artifact.

    @rtype: C{bytes}
    """
    boxes = [_box(eventcommands.LogHeader, version=FORMAT_VERSION)]
    boxes.extend(encodeEvent(event) for event in events)
    boxes.append(_box(eventcommands.LogTrailer, count=len(boxes) - 1))
    return b"".join(box.serialize() for box in boxes)



def parse(data, path):
    """
    Decode the content of the artifact at C{path}.

    @return: a C{list} of L{Event}.

    @raise ArtifactCorrupt: if C{data} is not a complete artifact of a
        supported version.
    @raise ReplayError: if it records an unknown kind of event.
    """
    try:
        boxes = parseString(data)
    except Exception as e:
        raise ArtifactCorrupt(path, "undecodable content (%s)" % (e,)) from e
    if not boxes or boxes[0].get(COMMAND) != eventcommands.LogHeader.commandName:
        raise ArtifactCorrupt(path, "no header")
    header = _parseFrame(eventcommands.LogHeader, boxes[0], path)
    if header['version'] != FORMAT_VERSION:
        raise ArtifactCorrupt(
            path, "unsupported format version %r" % (header['version'],))
    last = boxes[-1]
    if (len(boxes) < 2 or
            last.get(COMMAND) != eventcommands.LogTrailer.commandName):
        raise ArtifactCorrupt(path, "truncated, no trailer")
    trailer = _parseFrame(eventcommands.LogTrailer, last, path)
    records = boxes[1:-1]
    if trailer['count'] != len(records):
        raise ArtifactCorrupt(path, "trailer counts %d events, found %d" % (
            trailer['count'], len(records)))
    events = []
    for box in records:
        try:
            events.append(decodeEvent(box))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ArtifactCorrupt(path, "malformed event (%s)" % (e,)) from e
    return events



def _parseFrame(command, box, path):
    try:
        return command.parseArguments(box, None)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ArtifactCorrupt(
            path, "malformed %s (%s)" % (command.__name__, e)) from e



def readArtifact(path):
    """
    Read the events recorded in the artifact at C{path}.

    @param path: a L{FilePath}.

    @raise ArtifactMissing: if there is no file at C{path}.
    @raise ArtifactCorrupt: if the file cannot be decoded.
    """
    if not path.isfile():
        raise ArtifactMissing(path, "no such artifact")
    try:
        data = path.getContent()
    except (IOError, OSError) as e:
        raise ArtifactMissing(path, "unreadable (%s)" % (e,)) from e
    return parse(data, path)
