"""Scrape a schedule table from a web page into CSV"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from archnet.config.params_loader import ParamsLoader
from archnet.scrape.schedule import get_session, scrape_schedule


def main():
    params = ParamsLoader()
    parser = argparse.ArgumentParser(description='Scrape a schedule table to CSV')
    parser.add_argument('--url', type=str, required=True, help='Page URL')
    parser.add_argument('--output', type=str, required=True, help='Output CSV path')
    parser.add_argument('--placeholder', type=str, default=params.get('scrape', 'placeholder'), help='Value for missing links')
    parser.add_argument('--table-index', type=int, default=0, help='Which table on the page')

    args = parser.parse_args()

    session = get_session(retries=params.get('scrape', 'retries'))
    df = scrape_schedule(
        args.url,
        session=session,
        placeholder=args.placeholder,
        timeout=params.get('scrape', 'timeout_seconds'),
        table_index=args.table_index
    )

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output, index=False)
    print(f"{len(df)} rows saved to {output}")


if __name__ == '__main__':
    main()
