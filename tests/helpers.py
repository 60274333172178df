from nextbus.models import StopTimeEvent, StopTimeUpdate, TripUpdateRecord

# 2023-11-14 22:13:20 UTC, 2:13 pm Pacific (standard time)
NOW = 1_700_000_000


def stu(stop_id, at=None, delay=None):
    arrival = None
    if at is not None:
        arrival = StopTimeEvent(time=at, delay_specified=delay is not None, delay=delay or 0)
    return StopTimeUpdate(stop_id=stop_id, arrival=arrival)


def trip(route_id, *updates):
    return TripUpdateRecord(route_id_raw=route_id, stop_time_updates=list(updates))


class FakeProvider:
    def __init__(self, records):
        self.records = records
        self.calls = 0

    async def fetch_trip_updates(self):
        self.calls += 1
        return list(self.records)
