"""Write the sample Parquet files used by the test suite into ./sample-data.

Handy for trying the CLI by hand against known data.
"""

import sys
from pathlib import Path

import pyarrow.parquet as pq

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "tests"))
from data_factory import seed_files


def main():
    root = Path(sys.argv[1] if len(sys.argv) > 1 else "sample-data")

    print(f"Writing sample files to {root} …")
    files = seed_files(root)

    print()
    for name in sorted(files):
        path = files[name]
        if path.suffix != ".parquet" or name == "not_parquet":
            continue
        md = pq.read_metadata(path)
        print(f"  {path.name:<28s} {md.num_rows:>4d} rows, {md.num_row_groups} row group(s)")

    print(f"\nDone, wrote {len(files)} files.")
    print()
    print("Try:")
    print(f"  parquet-meta meta {root / 'orders.parquet'}")
    print(f"  parquet-meta -o table column-size {root / 'events.parquet'}")


if __name__ == "__main__":
    main()
