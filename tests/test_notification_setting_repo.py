from repos.notification_setting_repo import NotificationSettingRepository


class FakeSnap:
    def __init__(self, id, data):
        self.id = id
        self._data = data

    def to_dict(self):
        return dict(self._data)


class FakeQuery:
    def __init__(self, snaps, page_size=None, after=None):
        self.snaps = snaps
        self.page_size = page_size
        self.after = after
        self.filters = []

    def where(self, filter=None):
        self.filters.append(filter)
        return self

    def order_by(self, field):
        assert field == "__name__"
        return self

    def limit(self, n):
        return FakeQuery(self.snaps, page_size=n)

    def start_after(self, snap):
        return FakeQuery(self.snaps, page_size=self.page_size, after=snap)

    def stream(self):
        start = self.snaps.index(self.after) + 1 if self.after is not None else 0
        return iter(self.snaps[start:start + self.page_size])


class FakeDB:
    def __init__(self, snaps):
        self.query = FakeQuery(snaps)

    def collection(self, name):
        assert name == "notification_settings"
        return self.query


def test_reads_every_page():
    snaps = [FakeSnap(f"s{i}", {"user_id": f"U{i}"}) for i in range(5)]
    repo = NotificationSettingRepository(db=FakeDB(snaps), page_size=2)

    rows = list(repo.list_for_team_event("T", "documents.publish"))

    assert [r["setting_id"] for r in rows] == ["s0", "s1", "s2", "s3", "s4"]
    assert rows[4]["user_id"] == "U4"


def test_exact_page_multiple_stops_on_empty_page():
    snaps = [FakeSnap(f"s{i}", {"user_id": f"U{i}"}) for i in range(4)]
    repo = NotificationSettingRepository(db=FakeDB(snaps), page_size=2)
    assert len(list(repo.list_for_team_event("T", "documents.publish"))) == 4
