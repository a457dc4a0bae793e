#!/usr/bin/env python3
"""Smoke test for a live connection.

Usage:
    python scripts/smoke_test.py <kind> <url> [table]

Checks:
    * test_connection succeeds and connect lists at least one table
    * The chosen (or first) table opens: header present, total_pages >= 1
    * next_page/prev_page round-trip back to the same first row
    * Structure lookup answers (failure reported, not fatal)
    * (Optional) a filter term from SMOKE_FILTER applies and clears cleanly
"""
import os, sys, json
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from browser.workspace import Workspace  # noqa: E402
from drivers.errors import DriverError  # noqa: E402
from drivers.types import Connection, DriverKind  # noqa: E402

failures = []


def check(cond, msg):
    if not cond:
        failures.append(msg)


def main(argv):
    if len(argv) < 3:
        print(json.dumps({'success': False, 'error': 'usage: smoke_test.py <kind> <url> [table]'}))
        return 1
    kind, url = DriverKind.parse(argv[1]), argv[2]
    ws = Workspace()
    conn = Connection(name='smoke', kind=kind, url=url)
    try:
        ws.test_connection(kind, url)
        tables = ws.connect(conn)
    except DriverError as e:
        print(json.dumps({'success': False, 'error': str(e)}))
        return 1
    names = [t for group in tables.values() for t in group]
    check(bool(names), 'no tables listed')
    table = argv[3] if len(argv) > 3 else (names[0] if names else None)
    report = {'tables': len(names), 'table': table}
    try:
        if table:
            tab = ws.open_table(conn, table)
            check(bool(tab.header), f'{table}: empty header')
            check(tab.total_pages >= 1, f'{table}: total_pages < 1')
            first = tab.rows[0] if tab.rows else None
            if tab.next_page():
                tab.prev_page()
                check((tab.rows[0] if tab.rows else None) == first, f'{table}: page round-trip changed rows')
            check(tab.load_structure() is not None, f'{table}: structure unavailable')
            term = os.environ.get('SMOKE_FILTER')
            if term:
                tab.apply_filter(term)
                report['filtered_rows'] = tab.total_rows
                tab.clear_filters()
                check((tab.rows[0] if tab.rows else None) == first, f'{table}: clear_filters changed rows')
            report.update(total_rows=tab.total_rows, total_pages=tab.total_pages)
    except DriverError as e:
        check(False, f'{table}: {e}')
    finally:
        ws.close()

    if failures:
        print(json.dumps({'success': False, 'failures': failures, **report}))
        return 2
    print(json.dumps({'success': True, **report}))
    return 0


if __name__ == '__main__':
    raise SystemExit(main(sys.argv))
