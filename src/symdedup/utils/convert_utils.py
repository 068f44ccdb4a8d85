"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""
import re
from typing import Optional

# One or more trailing ".xxx"/".xxxx" segments; "archive.tar.gz" has none because ".gz" is too short
_PATTERN_EXTENSION = re.compile(r"((\.\w{3,4})+)$")


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to a binary-prefixed string (e.g., 1.0 KiB, 4.2 GiB).
        Values below 1024 are rendered as plain bytes ("512 B").
        """
        if abs(size_bytes) < 1024:
            return f"{size_bytes} B"

        value = abs(size_bytes) / 1024
        prefix = "K"
        # Move to the next prefix once rounding to one decimal would print 1024.0
        for next_prefix in "MGTPE":
            if value < 1023.95:
                break
            value /= 1024
            prefix = next_prefix

        sign = "-" if size_bytes < 0 else ""
        return f"{sign}{value:.1f} {prefix}iB"

    @staticmethod
    def human_to_bytes(size_str: str) -> int:
        """
        Convert human-readable size string to bytes.
        Supports formats: '1.5GB', '2048KB', '1000', '1K', '1MiB', etc.
        Raises ValueError for negative sizes or invalid formats.
        """
        size_str = size_str.strip().upper()

        # Define units with full (KB), binary (KIB) and short (K) forms
        units = {
            'PIB': 1024 ** 5, 'PB': 1024 ** 5, 'P': 1024 ** 5,
            'TIB': 1024 ** 4, 'TB': 1024 ** 4, 'T': 1024 ** 4,
            'GIB': 1024 ** 3, 'GB': 1024 ** 3, 'G': 1024 ** 3,
            'MIB': 1024 ** 2, 'MB': 1024 ** 2, 'M': 1024 ** 2,
            'KIB': 1024, 'KB': 1024, 'K': 1024,
            'B': 1,
        }

        # Check for unit suffix (longest first to avoid 'KB' matching as 'K' + 'B')
        for unit in sorted(units.keys(), key=len, reverse=True):
            if size_str.endswith(unit):
                value_str = size_str[:-len(unit)].strip()
                try:
                    value = float(value_str)
                except ValueError:
                    raise ValueError(f"Invalid numeric value in size: '{value_str}'")

                if value < 0:
                    raise ValueError(f"Negative size not allowed: '{size_str}'")
                return int(value * units[unit])

        # No unit specified, treat as bytes
        try:
            value = int(size_str)
        except ValueError:
            raise ValueError(
                f"Invalid size format: '{size_str}'. "
                f"Supported formats: 1.5GB, 2048KB, 1000, 1K, 1MiB, etc."
            )

        if value < 0:
            raise ValueError(f"Negative size not allowed: '{size_str}'")
        return value

    @staticmethod
    def get_extension(file_name: str) -> Optional[str]:
        """
        Return the trailing run of 3-4 character extensions, or None.
        "test.foo.bar" -> ".foo.bar", "foo.jpeg" -> ".jpeg", "noext" -> None
        """
        match = _PATTERN_EXTENSION.search(file_name)
        return match.group() if match else None
