import pytest

from godar.notification import AppriseNotifier, NotificationError, format_notification


class FakeApprise:
    """Stands in for ``apprise.Apprise`` so no real delivery happens."""

    def __init__(self, delivered: bool = True, supported: tuple[str, ...] = ("json://", "dbus://")):
        self.delivered = delivered
        self.supported = supported
        self.urls: list[str] = []
        self.sent: list[dict[str, str]] = []

    def add(self, url: str) -> bool:
        if not url.startswith(self.supported):
            return False
        self.urls.append(url)
        return True

    def notify(self, title: str, body: str) -> bool:
        self.sent.append({"title": title, "body": body})
        return self.delivered

    def __len__(self) -> int:
        return len(self.urls)


def test_format_without_previous_distance():
    title, body = format_notification("BAW123", "A319", 12000, 310.46, 10.3456, "NE")

    assert title == "Aircraft Detected: BAW123"
    assert body.splitlines() == [
        "Type: A319",
        "Altitude: 12000 ft",
        "Speed: 310.5 knots",
        "Distance: 10.35 km",
        "Direction: NE",
    ]


def test_format_reports_approach():
    _, body = format_notification("BAW123", "A319", 12000, 310.0, 8.0, "N", previous_distance=10.5)

    assert body.splitlines()[-1] == "Previous: 10.50 km (closer by 2.50 km)"


def test_format_reports_recession():
    _, body = format_notification("BAW123", "A319", 12000, 310.0, 12.25, "S", previous_distance=10.0)

    assert body.splitlines()[-1] == "Previous: 10.00 km (farther by 2.25 km)"


@pytest.mark.parametrize("previous", [None, 0.0])
def test_format_omits_previous_line_for_first_sighting(previous):
    _, body = format_notification("BAW123", "A319", 12000, 310.0, 8.0, "N", previous_distance=previous)

    assert "Previous" not in body


def test_unsupported_urls_are_skipped():
    client = FakeApprise()

    notifier = AppriseNotifier(urls="json://localhost, bogus://nowhere,,", client=client)

    assert client.urls == ["json://localhost"]
    assert notifier.target_count == 1


@pytest.mark.anyio
async def test_send_delivers_formatted_alert():
    client = FakeApprise()
    notifier = AppriseNotifier(urls=["json://localhost"], client=client)

    await notifier.send("BAW123", "A319", 12000, 310.0, 8.0, "N", previous_distance=10.0)

    assert len(client.sent) == 1
    assert client.sent[0]["title"] == "Aircraft Detected: BAW123"
    assert "closer by 2.00 km" in client.sent[0]["body"]


@pytest.mark.anyio
async def test_disabled_notifier_sends_nothing():
    client = FakeApprise()
    notifier = AppriseNotifier(enabled=False, urls="json://localhost", client=client)

    await notifier.send("BAW123", "A319", 12000, 310.0, 8.0, "N")

    assert client.sent == []


@pytest.mark.anyio
async def test_failed_delivery_raises():
    notifier = AppriseNotifier(urls="json://localhost", client=FakeApprise(delivered=False))

    with pytest.raises(NotificationError):
        await notifier.send("BAW123", "A319", 12000, 310.0, 8.0, "N")


@pytest.mark.anyio
async def test_no_targets_raises():
    notifier = AppriseNotifier(urls="", client=FakeApprise())

    with pytest.raises(NotificationError):
        await notifier.send("BAW123", "A319", 12000, 310.0, 8.0, "N")


def test_real_apprise_accepts_json_target():
    notifier = AppriseNotifier(urls="json://localhost")

    assert notifier.target_count == 1
