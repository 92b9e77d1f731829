import json
import chardet
from pathlib import Path
from typing import Dict, Any


class JsonAdapter:
    """JSON adapter for reading BOM documents reliably.

    Handles:
    - Multiple encodings (UTF-8, UTF-8-BOM, UTF-16, Windows-1252, etc.)
    - Edge cases (empty files, malformed JSON, non-object documents)
    """

    def can_handle(self, file_path: str) -> bool:
        """Check if this adapter can handle the given file."""
        return Path(file_path).suffix.lower() == ".json"

    def _detect_encoding(self, file_path: str) -> str:
        """Detect file encoding using chardet with fallback."""
        try:
            with open(file_path, 'rb') as f:
                raw_data = f.read(10000)  # Read first 10KB for detection
        except OSError:
            return 'utf-8'

        # Check for BOM first
        if raw_data.startswith(b'\xef\xbb\xbf'):
            return 'utf-8-sig'
        if raw_data.startswith((b'\xff\xfe', b'\xfe\xff')):
            return 'utf-16'

        result = chardet.detect(raw_data)
        encoding = result.get('encoding') or 'utf-8'

        # ASCII is a subset of UTF-8; keep UTF-8 so later non-ASCII bytes decode
        encoding_lower = encoding.lower()
        if 'utf-8' in encoding_lower or 'utf8' in encoding_lower or encoding_lower == 'ascii':
            return 'utf-8'

        return encoding

    def read(self, file_path: str) -> Dict[str, Any]:
        """Read a JSON file and return the BOM document it contains.

        Args:
            file_path: Path to the JSON file

        Returns:
            The decoded document dictionary

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file is empty, cannot be decoded, or does not
                hold a JSON object
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if path.stat().st_size == 0:
            raise ValueError(f"File is empty: {file_path}")

        encoding = self._detect_encoding(file_path)

        try:
            with open(file_path, 'r', encoding=encoding) as f:
                document = json.load(f)
        except UnicodeDecodeError as e:
            # Try with different encoding as fallback
            fallback_encodings = ['utf-8', 'cp1252', 'latin-1']
            for fallback_encoding in fallback_encodings:
                if fallback_encoding == encoding:
                    continue
                try:
                    with open(file_path, 'r', encoding=fallback_encoding) as f:
                        document = json.load(f)
                    break
                except (UnicodeDecodeError, json.JSONDecodeError):
                    continue
            else:
                raise ValueError(f"Could not decode file {file_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing JSON file {file_path}: {e}")

        if not isinstance(document, dict):
            raise ValueError(
                f"Expected a JSON object in {file_path}, got {type(document).__name__}"
            )

        return document
