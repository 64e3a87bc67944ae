"""Command-line script for training a chunker and saving the model.

The training file uses the CoNLL-2000 chunking layout: one token per line
with whitespace-separated columns, the last column being the chunk label,
and a blank line between sentences.
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from chunker.chunker import build_chunker
from chunker.config import default_config, load_config
from chunker.data_source import read_data_file
from chunker.errors import ChunkerError

def main():
    """
    Main entry point for the command-line training script.

    1.  Loads the configuration (window size, label history size,
        classifier and its hyperparameters) or falls back to the defaults.
    2.  Reads the labeled training data.
    3.  Trains a fresh chunker on the complete dataset.
    4.  Saves the model under the given directory and prefix.
    """
    parser = argparse.ArgumentParser(
        description="Train a chunker on a labeled CoNLL-style data file.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--data", type=str, required=True, help="Path to the labeled training data file.")
    parser.add_argument("--model-dir", type=str, required=True, help="Directory to save the model files in.")
    parser.add_argument("--prefix", type=str, default="model", help="Filename prefix of the model files.")
    parser.add_argument("--config", type=str, default=None, help="Optional path to a configuration YAML file.")
    args = parser.parse_args()

    try:
        cfg = load_config(args.config) if args.config else default_config()
        print(
            f"Using window size {cfg.window_size}, label history size {cfg.label_history_size}, "
            f"classifier '{cfg.classifier}'."
        )

        print(f"Loading training data from {args.data}...")
        rows = read_data_file(args.data, cfg.data_file_encoding)
        sentences = sum(1 for row in rows if not row)
        print(f"Read {len(rows)} rows ({sentences} sentence breaks).")

        chunker = build_chunker(cfg)
        chunker.train(rows)
        print(f"Trained on {chunker.encoder.feature_count} distinct features.")

        chunker.save_model(args.model_dir, args.prefix)
        print(f"Successfully saved model '{args.prefix}' to {args.model_dir}")

    except (ChunkerError, FileNotFoundError, ValueError, TypeError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
