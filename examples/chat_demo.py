"""Minimal demonstration of the document chat flow.

A plain text file stands in for the OCR engine: each line is one recognized line.
"""

import asyncio
import sys
from pathlib import Path

from scanner_core import build_service


class TextFileExtractor:
    def extract(self, image):
        return Path(image).read_text(encoding="utf-8").splitlines()


async def main(path: str) -> None:
    service = build_service(TextFileExtractor())
    await service.ingest_image(path)
    if not await service.open_chat():
        print("Error:", service.orchestrator.last_error())
        return
    print("Summary:", await service.summarize() or service.summary_error)
    while True:
        question = input("You: ")
        if question.strip() in {"/quit", "/exit"}:
            break
        answer = await service.ask(question)
        print("Model:", answer.text if answer else service.orchestrator.last_error())


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "README.md"))
