"""Client for the AssemblyAI hosted transcription API."""

from __future__ import annotations

import json
import os
import time
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, BinaryIO, ClassVar

import requests
from requests import Response, Session

from ...config.settings import AssemblyAISettings, TranscriptionSettings
from ...utils.logging import get_logger
from ...words import WordTimestamp
from .polling import PollingPolicy
from .service import ServiceTranscript

LOGGER = get_logger(__name__)

__all__ = [
    "AssemblyAIError",
    "AssemblyAITranscriber",
    "build_assemblyai_transcriber",
    "parse_transcript_payload",
    "speaker_display_name",
]

_FINISHED_STATUSES = frozenset({"completed", "error"})


def _maybe_float(value: object | None) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


class AssemblyAIError(RuntimeError):
    """Raised when transcription via the hosted API fails."""


def speaker_display_name(tag: object) -> str:
    """Map diarization tags ``"A"``, ``"B"``, ... onto ``"Speaker 1"``, ``"Speaker 2"``, ..."""
    label = str(tag).strip() if tag is not None else ""
    if len(label) == 1 and "A" <= label.upper() <= "Z":
        return f"Speaker {ord(label.upper()) - ord('A') + 1}"
    return label or "Unknown"


def parse_transcript_payload(
    payload: Mapping[str, object],
    *,
    diarized: bool,
) -> ServiceTranscript:
    """Validate a completed transcript payload and convert it to typed words.

    Word times arrive in milliseconds and are converted to seconds. Entries that are
    not mappings or lack usable timestamps are dropped.
    """
    raw_words = payload.get("words")
    entries: Iterable[object] = raw_words if isinstance(raw_words, Sequence) else ()

    words: list[WordTimestamp] = []
    raw_tags: list[object | None] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        start_ms = _maybe_float(entry.get("start"))
        end_ms = _maybe_float(entry.get("end"))
        if start_ms is None:
            continue
        if end_ms is None or end_ms < start_ms:
            end_ms = start_ms
        confidence = _maybe_float(entry.get("confidence"))
        if confidence is not None:
            confidence = max(0.0, min(1.0, confidence))
        text_raw = entry.get("text")
        words.append(
            WordTimestamp(
                text=str(text_raw) if text_raw is not None else "",
                start=start_ms / 1000.0,
                end=end_ms / 1000.0,
                confidence=confidence,
            )
        )
        raw_tags.append(entry.get("speaker"))

    speaker_tags: list[str] | None = None
    if diarized and any(tag is not None for tag in raw_tags):
        speaker_tags = [speaker_display_name(tag) for tag in raw_tags]

    text_raw = payload.get("text")
    language_raw = payload.get("language_code")
    return ServiceTranscript(
        text=str(text_raw) if isinstance(text_raw, str) else "",
        words=words,
        speaker_tags=speaker_tags,
        duration_seconds=_maybe_float(payload.get("audio_duration")) or 0.0,
        language_code=language_raw if isinstance(language_raw, str) and language_raw else None,
    )


class AssemblyAITranscriber:
    """Uploads audio, submits a transcript job and polls it to completion."""

    RETRY_STATUS_CODES: ClassVar[set[int]] = {429, 500, 502, 503, 504}

    def __init__(
        self,
        settings: AssemblyAISettings,
        *,
        speech_models: Sequence[str] = ("universal-2",),
        session: Session | None = None,
        polling: PollingPolicy | None = None,
        api_key: str | None = None,
    ) -> None:
        self.settings = settings
        self.speech_models = tuple(speech_models)
        self._session = session or requests.Session()
        self._polling = polling or PollingPolicy(
            interval_seconds=settings.poll_interval_seconds,
            max_attempts=settings.max_polls,
        )
        self._api_key = api_key

    def transcribe(
        self,
        source_id: str,
        audio_handle: str | Path,
        *,
        enable_diarization: bool,
    ) -> ServiceTranscript:
        """Transcribe one source's audio and return validated words."""
        headers = self._build_headers()
        audio_url = self._resolve_audio_url(audio_handle, headers)

        job = self._submit(audio_url, enable_diarization, headers)
        transcript_id = job.get("id")
        if not isinstance(transcript_id, str) or not transcript_id:
            raise AssemblyAIError("Transcript submission did not return an id.")
        LOGGER.info(
            "Submitted transcript %s for source %s (diarization=%s).",
            transcript_id,
            source_id,
            enable_diarization,
        )

        completed = self._polling.wait_for(
            lambda: self._get_transcript(transcript_id, headers),
            lambda state: state.get("status") in _FINISHED_STATUSES,
            initial=job,
            description=f"Transcript {transcript_id} for source {source_id}",
            on_poll=lambda state, attempt: LOGGER.debug(
                "Transcript %s status=%s (poll %s).", transcript_id, state.get("status"), attempt
            ),
        )
        if completed.get("status") == "error":
            raise AssemblyAIError(
                f"Transcription failed for source {source_id}: {completed.get('error')}"
            )
        return parse_transcript_payload(completed, diarized=enable_diarization)

    # ------------------------------------------------------------------
    # API calls
    # ------------------------------------------------------------------
    def _resolve_audio_url(self, audio_handle: str | Path, headers: Mapping[str, str]) -> str:
        handle = str(audio_handle)
        if handle.startswith(("http://", "https://")):
            return handle

        audio_path = Path(handle)
        if not audio_path.exists():
            raise FileNotFoundError(audio_path)

        upload_headers = {**headers, "Content-Type": "application/octet-stream"}
        with audio_path.open("rb") as audio_stream:
            response = self._request_with_retries(
                "POST",
                f"{self.settings.api_base_url}/v2/upload",
                headers=upload_headers,
                data=audio_stream,
                rewind=audio_stream,
            )
        upload_url = self._parse_response(response).get("upload_url")
        if not isinstance(upload_url, str) or not upload_url:
            raise AssemblyAIError("Upload response did not include an upload_url.")
        return upload_url

    def _submit(
        self,
        audio_url: str,
        enable_diarization: bool,
        headers: Mapping[str, str],
    ) -> dict[str, object]:
        body: dict[str, object] = {
            "audio_url": audio_url,
            "speaker_labels": enable_diarization,
        }
        if self.speech_models:
            body["speech_models"] = list(self.speech_models)
        response = self._request_with_retries(
            "POST",
            f"{self.settings.api_base_url}/v2/transcript",
            headers=headers,
            json=body,
        )
        return self._parse_response(response)

    def _get_transcript(self, transcript_id: str, headers: Mapping[str, str]) -> dict[str, object]:
        response = self._request_with_retries(
            "GET",
            f"{self.settings.api_base_url}/v2/transcript/{transcript_id}",
            headers=headers,
        )
        return self._parse_response(response)

    # ------------------------------------------------------------------
    # HTTP utilities
    # ------------------------------------------------------------------
    def _request_with_retries(
        self,
        method: str,
        url: str,
        *,
        rewind: BinaryIO | None = None,
        **kwargs: Any,
    ) -> Response:
        attempts = 0
        backoff = 1.0
        last_error: Exception | None = None

        while attempts <= self.settings.max_retries:
            if rewind is not None:
                rewind.seek(0)
            try:
                response = self._session.request(
                    method,
                    url,
                    timeout=self.settings.timeout_seconds,
                    **kwargs,
                )
            except requests.RequestException as exc:  # pragma: no cover - network dependent
                last_error = exc
                LOGGER.warning("AssemblyAI request failed (%s); retrying.", exc)
            else:
                if response.status_code < 400:
                    return response
                if response.status_code not in self.RETRY_STATUS_CODES:
                    raise AssemblyAIError(
                        f"AssemblyAI responded with status {response.status_code}: {response.text}"
                    )
                last_error = AssemblyAIError(
                    f"Received retryable status {response.status_code}: {response.text}"
                )
                LOGGER.warning(
                    "AssemblyAI returned %s; backing off for %.1fs.",
                    response.status_code,
                    backoff,
                )
            attempts += 1
            if attempts > self.settings.max_retries:
                break
            time.sleep(backoff)
            backoff = min(backoff * 2, 30.0)

        raise AssemblyAIError("Exceeded maximum retries for AssemblyAI") from last_error

    def _build_headers(self) -> dict[str, str]:
        api_key = self._api_key or os.environ.get(self.settings.api_key_env)
        if not api_key:
            raise AssemblyAIError(
                "AssemblyAI API key not available. Set the environment variable "
                f"{self.settings.api_key_env}."
            )
        return {"Authorization": api_key}

    @staticmethod
    def _parse_response(response: Response) -> dict[str, object]:
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise AssemblyAIError("Unable to decode AssemblyAI response as JSON.") from exc
        if not isinstance(data, Mapping):
            raise AssemblyAIError("AssemblyAI returned a non-object payload.")
        return {str(key): value for key, value in data.items()}


def build_assemblyai_transcriber(
    config: Mapping[str, object],
    *,
    session: Session | None = None,
    polling: PollingPolicy | None = None,
) -> AssemblyAITranscriber:
    """Factory helper that reads provider and transcription settings from config."""

    settings = AssemblyAISettings.from_config(config)
    transcription = TranscriptionSettings.from_config(config)
    return AssemblyAITranscriber(
        settings,
        speech_models=transcription.speech_models,
        session=session,
        polling=polling,
    )
