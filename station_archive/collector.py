"""
Compacts archived station_status snapshots into a single Parquet file.

Only active stations are kept. Snapshot times are floored to the minute and
station ids are replaced by dense numeric ids, written out as id_map.json.
"""
import os
import sys
import gzip
import json
import logging
from pathlib import Path

import pandas as pd

from station_archive import config
from station_archive.archiver import KEY_PREFIX

logger = logging.getLogger(__name__)

COUNT_COLUMNS = [
    'num_bikes_available',
    'num_ebikes_available',
    'num_bikes_disabled',
    'num_docks_available'
]

OUTPUT_COLUMNS = ['station_ids'] + COUNT_COLUMNS + ['time']

UINT16_MAX = 65535


def load_snapshot(path):
    with gzip.open(path, 'rt', encoding='utf-8') as f:
        return json.load(f)


def snapshot_time_ms(last_updated):
    """Epoch seconds floored to the minute, in milliseconds."""
    return (int(last_updated) // 60) * 60 * 1000


def uint16_count(station, name):
    value = int(station.get(name, 0))
    if not 0 <= value <= UINT16_MAX:
        raise ValueError(f"{name}={value} out of range for station {station.get('station_id')}")
    return value


def snapshot_rows(status, legend):
    """
    Rows for the active stations of one snapshot. New station ids are
    added to `legend` in order of first appearance.
    """
    time_ms = snapshot_time_ms(status['last_updated'])
    rows = []
    for station in status['data']['stations']:
        if station.get('station_status') != 'active':
            continue
        station_id = str(station['station_id'])
        if station_id not in legend:
            if len(legend) >= UINT16_MAX:
                raise ValueError(f"More than {UINT16_MAX} active stations")
            legend[station_id] = len(legend) + 1

        ebikes = uint16_count(station, 'num_ebikes_available')
        rows.append({
            'station_ids': legend[station_id],
            # Classic bikes only, e-bikes are counted separately
            'num_bikes_available': max(uint16_count(station, 'num_bikes_available') - ebikes, 0),
            'num_ebikes_available': ebikes,
            'num_bikes_disabled': uint16_count(station, 'num_bikes_disabled'),
            'num_docks_available': uint16_count(station, 'num_docks_available'),
            'time': time_ms,
        })
    return rows


def collect(archive_dir):
    """
    Read every archived snapshot under archive_dir.
    Returns (DataFrame ordered by station then time, {station_id: numeric_id}).
    Unreadable or malformed archives are logged and skipped.
    """
    files = sorted(Path(archive_dir).glob(f"{KEY_PREFIX}/*.json.gz"))
    logger.info(f"Found {len(files)} archived snapshot(s) in {archive_dir}.")

    legend = {}
    rows = []
    for path in files:
        try:
            status = load_snapshot(path)
            # A malformed snapshot must not leave ids behind in the legend
            updated = dict(legend)
            rows.extend(snapshot_rows(status, updated))
            legend = updated
        except (OSError, EOFError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Skipping unreadable snapshot {path.name}: {e}")

    df = pd.DataFrame(rows, columns=OUTPUT_COLUMNS)
    df['station_ids'] = df['station_ids'].astype('uint16')
    for col in COUNT_COLUMNS:
        df[col] = df[col].astype('uint16')
    df['time'] = pd.to_datetime(df['time'].astype('int64'), unit='ms')

    df = df.sort_values(['station_ids', 'time'], kind='stable').reset_index(drop=True)
    logger.info(f"Collected {len(df)} rows for {len(legend)} active station(s).")
    return df, legend


def write_outputs(df, legend, output_dir):
    """
    Write data.parquet and id_map.json to output_dir. Returns both paths.
    """
    os.makedirs(output_dir, exist_ok=True)
    parquet_path = os.path.join(output_dir, 'data.parquet')
    legend_path = os.path.join(output_dir, 'id_map.json')

    df.to_parquet(
        parquet_path,
        engine='pyarrow',
        index=False,
        coerce_timestamps='ms',
        allow_truncated_timestamps=True
    )
    logger.info(f"Saved Parquet file: {parquet_path} with {len(df)} records.")

    with open(legend_path, 'w', encoding='utf-8') as f:
        json.dump(legend, f)
    logger.info(f"Saved station id map: {legend_path}")
    return parquet_path, legend_path


def main():
    config.configure_logging()
    try:
        df, legend = collect(config.ARCHIVE_DIR)
        write_outputs(df, legend, config.COLLECT_OUTPUT_DIR)
    except OSError as e:
        logger.error(f"Error writing collector output: {e}")
        sys.exit(1)
    logger.info("Collection completed.")


if __name__ == "__main__":
    main()
