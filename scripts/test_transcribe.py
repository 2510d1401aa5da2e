"""Manual smoke check: run the real transcription pipeline on a file or URL.

Usage:
    python scripts/test_transcribe.py path/to/video.mp4
    python scripts/test_transcribe.py https://www.youtube.com/watch?v=...

Requires OPENAI_API_KEY and an ffmpeg binary on PATH.
"""

import asyncio
import os
import sys

# Add project root to path so we can import mediagate
sys.path.append(os.getcwd())

from mediagate.config.dependencies import build_providers
from mediagate.config.settings import settings
from mediagate.domain import RemoteReference, UploadedBlob
from mediagate.services.errors import GatewayError


async def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/test_transcribe.py <video file | video URL>")
        return

    target = sys.argv[1]
    if target.startswith(("http://", "https://")):
        source = RemoteReference(url=target)
        print(f"Transcribing remote video {target}...")
    elif os.path.exists(target):
        with open(target, "rb") as f:
            source = UploadedBlob(name=os.path.basename(target), data=f.read())
        print(f"Transcribing {len(source.data)} bytes from {target}...")
    else:
        print(f"File '{target}' not found.")
        return

    providers = build_providers(settings)
    try:
        result = await providers.transcription.run(source)
        print("\n--- Transcript Result ---")
        if result.video_title:
            print(f"Title: {result.video_title}")
        print(result.text)
        print("-------------------------")
    except GatewayError as e:
        print(f"\nTranscription Error: {e.message}")
        if e.details:
            print(f"Details: {e.details}")
    finally:
        await providers.aclose()


if __name__ == "__main__":
    asyncio.run(main())
