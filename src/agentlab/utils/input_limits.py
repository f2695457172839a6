"""
Input size checks for LLM and embedding calls.

Plain character counts against hard limits; no tokenizer is involved.
"""

from typing import List, Optional


class InputValidator:
    """Character-limit checks raised as ValueError; clients wrap them."""

    @staticmethod
    def validate_total_chars(
        prompt: str,
        system_prompt: Optional[str] = None,
        max_chars: int = 0
    ) -> None:
        """
        Validate the combined size of a prompt and its system prompt.

        Raises:
            ValueError: If the total exceeds max_chars

        Example:
            >>> InputValidator.validate_total_chars("Hello", system_prompt="Hi", max_chars=1000)
        """
        total_chars = len(prompt)
        if system_prompt:
            total_chars += len(system_prompt)

        if total_chars > max_chars:
            raise ValueError(
                f"Total input too large: {total_chars} characters, "
                f"maximum allowed: {max_chars}"
            )

    @staticmethod
    def validate_batch_chars(
        texts: List[str],
        max_chars_per_text: int,
        label: str = "Text in batch",
    ) -> None:
        """
        Validate that every text of an embedding batch is within the limit.

        Raises:
            ValueError: Naming the index of the first oversize text
        """
        for i, text in enumerate(texts):
            if len(text) > max_chars_per_text:
                raise ValueError(
                    f"{label} at index {i} too large: "
                    f"{len(text)} characters, maximum allowed: {max_chars_per_text}"
                )
