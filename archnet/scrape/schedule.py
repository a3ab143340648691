"""Scrape a schedule table from an HTML page"""
from io import StringIO
from typing import Optional
from urllib.parse import urljoin

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from archnet.analysis_logging import log_event

LINK_SUFFIX = '_link'


def get_session(retries: int = 3) -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=1,
        status_forcelist=[500, 502, 503, 504],
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def _split_cell(cell):
    if isinstance(cell, tuple) and len(cell) == 2:
        return cell[0], cell[1]
    return cell, None


def parse_schedule(html: str, placeholder: str = "NA", table_index: int = 0) -> pd.DataFrame:
    """
    Parse a schedule table into text columns plus `<column>_link` columns.

    A cell without a link gets `placeholder`. Link columns that would be
    placeholder for every row are dropped.
    """
    tables = pd.read_html(StringIO(html), extract_links="body", flavor="lxml")
    if table_index >= len(tables):
        raise ValueError(f"Page has {len(tables)} tables, no table at index {table_index}")
    raw = tables[table_index]

    out = pd.DataFrame(index=raw.index)
    for col in raw.columns:
        if isinstance(col, tuple):
            name = " ".join(str(c) for c in col if c)
        else:
            name = str(col)
        texts, links = zip(*(_split_cell(cell) for cell in raw[col])) if len(raw) else ((), ())
        out[name] = list(texts)
        if any(link for link in links):
            out[name + LINK_SUFFIX] = [link if link else placeholder for link in links]

    return out.reset_index(drop=True)


def absolutize_links(df: pd.DataFrame, base_url: str, placeholder: str = "NA") -> pd.DataFrame:
    """Resolve relative links against base_url; placeholders are left as-is"""
    result = df.copy()
    for col in result.columns:
        if col.endswith(LINK_SUFFIX):
            result[col] = [
                link if link == placeholder else urljoin(base_url, link)
                for link in result[col]
            ]
    return result


def scrape_schedule(
    url: str,
    session: Optional[requests.Session] = None,
    placeholder: str = "NA",
    timeout: float = 30,
    table_index: int = 0,
    sink=None
) -> pd.DataFrame:
    """Fetch and parse a schedule page; links are made absolute against the page URL"""
    session = session or get_session()
    response = session.get(url, timeout=timeout)
    response.raise_for_status()

    df = parse_schedule(response.text, placeholder=placeholder, table_index=table_index)
    df = absolutize_links(df, url, placeholder=placeholder)
    log_event('schedule_scraped', {
        'url': url,
        'rows': len(df),
        'missing_links': int(sum((df[c] == placeholder).sum() for c in df.columns if c.endswith(LINK_SUFFIX)))
    }, sink=sink)
    return df
