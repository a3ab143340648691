"""Tests for schedule scraping (no network access)"""
import pytest
import requests

from archnet.scrape.schedule import parse_schedule, absolutize_links, scrape_schedule, get_session

HTML = """
<html><body>
<table>
  <thead><tr><th>Date</th><th>Opponent</th><th>Tickets</th></tr></thead>
  <tbody>
    <tr><td>2024-09-01</td><td><a href="/teams/ajax">Ajax</a></td><td><a href="/tickets/1">Buy</a></td></tr>
    <tr><td>2024-09-08</td><td><a href="/teams/psv">PSV</a></td><td>Sold out</td></tr>
  </tbody>
</table>
</body></html>
"""


class StubResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


class StubSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        return self.response


class TestParseSchedule:

    def test_columns(self):
        df = parse_schedule(HTML)
        assert list(df.columns) == ['Date', 'Opponent', 'Opponent_link', 'Tickets', 'Tickets_link']
        assert df['Opponent'].tolist() == ['Ajax', 'PSV']

    def test_missing_link_placeholder(self):
        df = parse_schedule(HTML, placeholder='NA')
        assert df['Tickets_link'].tolist() == ['/tickets/1', 'NA']

    def test_custom_placeholder(self):
        df = parse_schedule(HTML, placeholder='none')
        assert df.loc[1, 'Tickets_link'] == 'none'

    def test_headerless_table(self):
        html = (
            "<table>"
            "<tr><td>2024-09-01</td><td><a href='/teams/ajax'>Ajax</a></td></tr>"
            "<tr><td>2024-09-08</td><td>PSV</td></tr>"
            "</table>"
        )
        df = parse_schedule(html)
        assert list(df.columns) == ['0', '1', '1_link']
        assert df['1'].tolist() == ['Ajax', 'PSV']
        assert df['1_link'].tolist() == ['/teams/ajax', 'NA']

    def test_no_table(self):
        with pytest.raises(ValueError):
            parse_schedule("<html><body><p>nothing</p></body></html>")

    def test_bad_table_index(self):
        with pytest.raises(ValueError):
            parse_schedule(HTML, table_index=3)

    def test_absolutize(self):
        df = absolutize_links(parse_schedule(HTML), 'https://example.org/schedule/')
        assert df['Opponent_link'].tolist() == [
            'https://example.org/teams/ajax',
            'https://example.org/teams/psv'
        ]
        assert df.loc[1, 'Tickets_link'] == 'NA'


class TestScrapeSchedule:

    def test_scrape_with_stub_session(self):
        sink = []
        session = StubSession(StubResponse(HTML))
        df = scrape_schedule('https://example.org/schedule', session=session, timeout=5, sink=sink)

        assert session.calls == [('https://example.org/schedule', 5)]
        assert df.loc[0, 'Tickets_link'] == 'https://example.org/tickets/1'
        assert sink[0]['event_type'] == 'schedule_scraped'
        assert sink[0]['missing_links'] == 1

    def test_http_error_propagates(self):
        session = StubSession(StubResponse("", status=404))
        with pytest.raises(requests.HTTPError):
            scrape_schedule('https://example.org/missing', session=session)

    def test_session_has_retries(self):
        session = get_session(retries=5)
        adapter = session.get_adapter('https://example.org')
        assert adapter.max_retries.total == 5
