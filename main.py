import argparse
import sys
from pathlib import Path

# Add project root to path for robust execution
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from chunker.chunker import Chunker
from chunker.data_source import read_data_file, write_labels
from chunker.errors import ChunkerError

def main():
    """
    Main command-line interface for chunking text with a saved model.

    This script performs the following steps:
    1.  Loads the model saved under the given directory and prefix. The
        encoder and classifier implementations are picked from the tags
        stored with the model.
    2.  Reads the unlabeled input file (one token per line, whitespace-
        separated columns, blank lines between sentences).
    3.  Predicts a chunk label for every token.
    4.  Writes each input line followed by its predicted label.
    """
    parser = argparse.ArgumentParser(
        description="Chunk an unlabeled CoNLL-style data file with a trained model.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Path to the input (unlabeled) data file."
    )
    parser.add_argument(
        "--output",
        required=True,
        help="Path to write the labeled output file."
    )
    parser.add_argument(
        "--model-dir",
        required=True,
        help="Directory holding the saved model files."
    )
    parser.add_argument(
        "--prefix",
        default="model",
        help="Filename prefix of the saved model files."
    )
    parser.add_argument(
        "--encoding",
        default="UTF-8",
        help="Character encoding of the input and output files."
    )
    args = parser.parse_args()

    try:
        print(f"Loading model '{args.prefix}' from {args.model_dir}...")
        chunker = Chunker()
        chunker.load_model(args.model_dir, args.prefix)

        print(f"Loading rows from {args.input}...")
        rows = read_data_file(args.input, args.encoding)

        print("Chunking rows...")
        labels = chunker.chunk(rows)

        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        write_labels(output_path, rows, labels, args.encoding)

        print(f"\nSuccessfully wrote {sum(1 for l in labels if l)} labels to {args.output}")

    except (ChunkerError, FileNotFoundError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
