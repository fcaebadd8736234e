#!/usr/bin/env python
"""
Script to download the FEVER claim files
Can also write a small sample file for trying the pipeline
"""

import json
import random
import argparse
from pathlib import Path

import requests
from tqdm import tqdm

from fever_ml.config import FEVER_URLS, RANDOM_SEED, RAW_DATA_DIR
from fever_ml.utils import console


def download_file(url: str, dest_path: Path, chunk_size: int = 8192):
    """Download file with progress bar"""
    response = requests.get(url, stream=True, timeout=60)
    response.raise_for_status()
    total_size = int(response.headers.get('content-length', 0))

    with open(dest_path, 'wb') as file:
        with tqdm(total=total_size, unit='B', unit_scale=True, desc=dest_path.name) as pbar:
            for chunk in response.iter_content(chunk_size=chunk_size):
                file.write(chunk)
                pbar.update(len(chunk))


def download_fever(split: str):
    """Download one FEVER split"""
    url = FEVER_URLS[split]
    dest = RAW_DATA_DIR / url.rsplit('/', 1)[-1]

    if dest.exists():
        console.print(f"[yellow]{dest.name} already exists, skipping[/yellow]")
        return dest

    console.print(f"[cyan]Downloading FEVER {split} split...[/cyan]")
    try:
        download_file(url, dest)
    except requests.RequestException:
        # never leave a truncated file behind
        dest.unlink(missing_ok=True)
        raise

    console.print(f"[green]✓ Downloaded {dest.name}[/green]")
    return dest


SAMPLE_CLAIMS = [
    ("Nikolaj Coster-Waldau worked with the Fox Broadcasting Company.", "SUPPORTS",
     [[[92206, 104971, "Nikolaj_Coster-Waldau", 7], [92206, 104971, "Fox_Broadcasting_Company", 0]]]),
    ("Roman Atwood is a content creator.", "SUPPORTS",
     [[[174271, 187498, "Roman_Atwood", 1]]]),
    ("History of art includes architecture, dance, sculpture, music, painting, poetry literature.", "SUPPORTS",
     [[[255136, 254645, "History_of_art", 2]]]),
    ("Adrienne Bailon is an accountant.", "REFUTES",
     [[[108281, 121749, "Adrienne_Bailon", 0]]]),
    ("System of a Down briefly disbanded in limbo.", "NOT ENOUGH INFO",
     [[[174271, None, None, None]]]),
    ("Homeland is an American television spy thriller based on the Israeli television series Prisoners of War.",
     "SUPPORTS", [[[90871, 103600, "Homeland_(TV_series)", 0]]]),
    ("The Boston Celtics play their home games at TD Garden.", "SUPPORTS",
     [[[225708, 230323, "Boston_Celtics", 3]]]),
    ("The Ten Commandments is an epic film.", "SUPPORTS",
     [[[44812, 53493, "The_Ten_Commandments_(1956_film)", 0]]]),
    ("Tetris has sold millions of physical copies.", "NOT ENOUGH INFO",
     [[[164417, None, None, None]]]),
    ("Stranger Things is set in Bloomington, Indiana.", "REFUTES",
     [[[119508, 136582, "Stranger_Things", 5]]]),
    ("The Mod Squad is a terrible horror film.", "NOT ENOUGH INFO",
     [[[7890, None, None, None]]]),
    ("Ayn Rand never wrote a novel.", "REFUTES",
     [[[51500, 61000, "Ayn_Rand", 1]]]),
]


def create_sample_dataset(n_copies: int = 20):
    """Create a small FEVER-format file for testing the pipeline"""
    console.print("[cyan]Creating sample dataset for testing...[/cyan]")

    rng = random.Random(RANDOM_SEED)
    output_path = RAW_DATA_DIR / "sample.jsonl"
    counts = {}

    with open(output_path, 'w', encoding='utf-8') as f:
        record_id = 0
        for copy in range(n_copies):
            for claim, label, evidence in SAMPLE_CLAIMS:
                record_id += 1
                record = {
                    'id': record_id,
                    'verifiable': 'NOT VERIFIABLE' if label == 'NOT ENOUGH INFO' else 'VERIFIABLE',
                    'label': label,
                    # Vary the text so copies are not exact duplicates
                    'claim': f"{claim} {rng.choice(['Reportedly', 'Allegedly', 'Indeed', 'Notably'])} so.",
                    'evidence': evidence,
                }
                f.write(json.dumps(record) + '\n')
                counts[label] = counts.get(label, 0) + 1

    console.print(f"[green]✓ Sample dataset created: {output_path}[/green]")
    console.print(f"  - {record_id} claims")
    for label, count in counts.items():
        console.print(f"  - {count} {label}")


def main():
    parser = argparse.ArgumentParser(description="Download FEVER claim files")
    parser.add_argument('--dataset', type=str, default='train',
                        choices=['train', 'dev', 'sample', 'all'],
                        help='Dataset to download')
    args = parser.parse_args()

    RAW_DATA_DIR.mkdir(parents=True, exist_ok=True)

    if args.dataset in ('train', 'all'):
        download_fever('train')

    if args.dataset in ('dev', 'all'):
        download_fever('dev')

    if args.dataset in ('sample', 'all'):
        create_sample_dataset()

    console.print("\n[bold green]✨ Data download complete![/bold green]")
    console.print("\nNext steps:")
    console.print("1. Run: python -m fever_ml.eda --data data/raw/train.jsonl")
    console.print("2. Run: python -m fever_ml.train --data data/raw/train.jsonl")
    console.print("3. Walk through the report: notebooks/01_report.py")


if __name__ == "__main__":
    main()
