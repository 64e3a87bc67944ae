"""Command-line script for evaluating a trained chunker.

The labeled reference file is stripped of its label column, chunked with
the saved model, and the predictions are compared with the reference
labels. The script reports token accuracy and chunk-level precision,
recall and F1 (a chunk is correct only when both its span and its type
match), and can write every disagreement to a CSV file for error analysis.
"""
import argparse
import csv
import json
import sys
from pathlib import Path

# Add project root to path to allow for package imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from chunker.chunker import Chunker
from chunker.data_source import read_data_file, strip_labels
from chunker.errors import ChunkerError
from chunker.evaluation import evaluate

def main():
    """Main entry point for the command-line model evaluation script."""
    parser = argparse.ArgumentParser(
        description="Evaluate a trained chunker against a labeled reference file.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--data", required=True, help="Path to the labeled reference data file.")
    parser.add_argument("--model-dir", required=True, help="Directory holding the saved model files.")
    parser.add_argument("--prefix", default="model", help="Filename prefix of the saved model files.")
    parser.add_argument("--encoding", default="UTF-8", help="Character encoding of the data file.")
    parser.add_argument("--disagreements-out", help="Optional: Path to write a disagreements CSV file.")
    args = parser.parse_args()

    try:
        print("Loading files...")
        chunker = Chunker()
        chunker.load_model(args.model_dir, args.prefix)
        rows = read_data_file(args.data, args.encoding)

        gold = [row[-1] if row else "" for row in rows]
        predicted = chunker.chunk(strip_labels(rows))

        print("\n--- Comparison Metrics (vs. Reference) ---")
        print(json.dumps(evaluate(gold, predicted), indent=2))

        if args.disagreements_out:
            disagreements = [
                {"index": i, "token": row[0], "generated": p, "reference": g}
                for i, (row, g, p) in enumerate(zip(rows, gold, predicted))
                if row and g != p
            ]
            Path(args.disagreements_out).parent.mkdir(parents=True, exist_ok=True)
            print(f"\nWriting {len(disagreements)} disagreements to {args.disagreements_out}...")
            with open(args.disagreements_out, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=["index", "token", "generated", "reference"])
                writer.writeheader()
                writer.writerows(disagreements)

    except (ChunkerError, FileNotFoundError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
