from auraed.discovery import DiscoverRequest, DiscoverResponse, DiscoveryService


def test_discover_reports_healthy():
    response = DiscoveryService().discover(DiscoverRequest())
    assert response.healthy is True


def test_discover_reports_a_version_string():
    response = DiscoveryService().discover(DiscoverRequest())
    assert isinstance(response.version, str)
    assert len(response.version) > 0


def test_discover_is_stable_across_calls():
    service = DiscoveryService()
    first = service.discover(DiscoverRequest())
    second = service.discover(None)
    assert first == second


def test_separate_services_agree():
    first = DiscoveryService().discover()
    second = DiscoveryService().discover()
    assert first.healthy is True
    assert second == DiscoverResponse(healthy=True, version=first.version)


def test_response_round_trips_fields():
    response = DiscoverResponse(healthy=False, version="1.2.3")
    assert (response.healthy, response.version) == (False, "1.2.3")