NAME_IN_USE = "Name already in use"


def locked_message(minutes: int | float | None) -> str:
    if minutes is None:
        return "Spyfall is about to restart for an update. New games are locked; please try again later."
    if isinstance(minutes, float) and minutes.is_integer():
        minutes = int(minutes)
    unit = "minute" if minutes == 1 else "minutes"
    return (
        "Spyfall is about to restart for an update. "
        f"New games are locked; please try again in {minutes} {unit}."
    )
