"""Text rendering of recorded parse events."""


def _quote(value):
    return repr(value.decode("utf-8", "backslashreplace"))


def to_test_format(events):
    """Render ``EventRecorder.events`` as one line per event.

    Example:
        | enter_element 'root'
        | element_attribute 'a'='v'
    """
    lines = []
    for event in events:
        kind = event[0]
        args = event[1:]
        if kind == "element_attribute":
            name, value = args
            lines.append(f"| {kind} {_quote(name)}={_quote(value)}")
        elif args:
            lines.append(f"| {kind} {_quote(args[0])}")
        else:
            lines.append(f"| {kind}")
    return "\n".join(lines)
