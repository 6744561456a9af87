#!/usr/bin/env python3
"""Utility script to run the chunked transcription pipeline on a local audio file.

This script:
1. Reads an audio file (WAV, FLAC, OGG) with soundfile
2. Splits it into fixed windows, like a live recording
3. Transcribes every window with the real OpenAI API
4. Prints the resulting transcript segments

Usage:
    python scripts/transcribe_local_file.py path/to/meeting.wav [chunk_seconds]
"""
import asyncio
import sys
from pathlib import Path

import numpy as np
import soundfile as sf
from dotenv import load_dotenv
from openai import AsyncOpenAI

# Load environment variables from .env file
load_dotenv()

# Add parent directory to path to import services
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import Settings
from models.chunk_result import ChunkStatus
from services.ai_service import AIService
from services.audio_capture import AudioCaptureService
from services.media_sources import encode_wav


async def main():
    """Main execution function."""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    input_file = Path(sys.argv[1])
    settings = Settings.from_env()
    chunk_seconds = float(sys.argv[2]) if len(sys.argv) > 2 else settings.chunk_seconds

    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}")
        sys.exit(1)
    if not settings.openai_api_key:
        print("Error: OPENAI_API_KEY is not set")
        sys.exit(1)

    samples, samplerate = sf.read(input_file, dtype="float32", always_2d=True)
    mono = samples.mean(axis=1).astype(np.float32)
    window = int(samplerate * chunk_seconds)

    print(f"Reading audio from: {input_file}")
    print(f"Duration: {len(mono) / samplerate:.1f}s, chunks of {chunk_seconds}s")

    ai_service = AIService(
        AsyncOpenAI(api_key=settings.openai_api_key),
        model=settings.openai_model,
        transcription_model=settings.openai_transcription_model,
    )
    pipeline = AudioCaptureService(
        transcriber=ai_service,
        on_segments=lambda segments: None,
        media_provider=None,
        chunk_seconds=chunk_seconds,
        min_chunk_bytes=settings.min_chunk_bytes,
        samplerate=samplerate,
        label=input_file.name,
    )

    segments = []
    for index, start in enumerate(range(0, len(mono), window)):
        result = await pipeline.process_chunk(encode_wav(mono[start:start + window], samplerate))
        if result.status == ChunkStatus.segments:
            segments.extend(result.segments)
            print(f"[{index * chunk_seconds:7.1f}s] {result.segments[0].text}")
        elif result.status == ChunkStatus.error:
            print(f"[{index * chunk_seconds:7.1f}s] ✗ {result.error}")

    print(f"\n✓ Processing complete! {len(segments)} segments")


if __name__ == "__main__":
    asyncio.run(main())
