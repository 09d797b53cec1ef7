"""CLI startup entrypoint for nav-voice."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import typer
from rich import print

from nav_voice.assistant import NavigationVoiceAssistant
from nav_voice.config import settings
from nav_voice.scheduling import AsyncioScheduler
from nav_voice.telemetry.logging import configure_logging
from nav_voice.voice.intents import AnswerClassifier, AnswerPatterns
from nav_voice.voice.interfaces import RecognitionConfig
from nav_voice.voice.output import SpeechPriority

app = typer.Typer(help="nav-voice voice assistant entrypoint")

_IDLE_POLL_SECONDS = 0.05


@app.callback()
def main(log_level: str = typer.Option(None, help="Override NAV_VOICE_LOG_LEVEL")) -> None:
    configure_logging(log_level or settings.log_level)


def _build_assistant(
    scheduler: AsyncioScheduler,
    *,
    with_recognizer: bool = False,
    with_clip_player: bool = False,
) -> NavigationVoiceAssistant:
    try:
        from nav_voice.voice.tts_pyttsx3 import Pyttsx3SpeechSynthesizer

        synthesizer = Pyttsx3SpeechSynthesizer(scheduler)
        recognizer = None
        clip_player = None
        if with_recognizer:
            from nav_voice.voice.stt_speechrecognition import SpeechRecognitionRecognizer

            recognizer = SpeechRecognitionRecognizer(
                scheduler,
                phrase_time_limit=settings.phrase_time_limit,
                timeout=settings.listen_timeout,
            )
        if with_clip_player:
            from nav_voice.voice.playback import SoundDeviceClipPlayer

            clip_player = SoundDeviceClipPlayer(scheduler)
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    except ImportError:
        print({"error": "Voice extras are missing. Install with: pip install 'nav-voice[voice]'"})
        raise typer.Exit(code=1)

    assistant = NavigationVoiceAssistant(
        scheduler,
        synthesizer=synthesizer,
        recognizer=recognizer,
        clip_player=clip_player,
        classifier=AnswerClassifier(
            AnswerPatterns.from_lists(settings.affirmative_patterns, settings.negative_patterns)
        ),
        recognition_config=RecognitionConfig(language=settings.recognition_language),
        voice_enabled=settings.voice_enabled,
    )
    assistant.start()
    return assistant


async def _wait_until_idle(assistant: NavigationVoiceAssistant) -> None:
    while assistant.speech.is_speaking or assistant.alerts.is_playing or assistant.alerts.pending:
        await asyncio.sleep(_IDLE_POLL_SECONDS)


def _run(body: Callable[[NavigationVoiceAssistant], Awaitable[object]], **build_options: bool) -> object:
    async def _main() -> object:
        assistant = _build_assistant(AsyncioScheduler(), **build_options)
        try:
            result = await body(assistant)
            await _wait_until_idle(assistant)
            return result
        finally:
            assistant.stop()

    return asyncio.run(_main())


@app.command()
def start() -> None:
    """Show runtime configuration."""
    print(
        {
            "app_name": settings.app_name,
            "voice_enabled": settings.voice_enabled,
            "auto_recognition": settings.auto_recognition,
            "recognition_language": settings.recognition_language,
            "affirmative_patterns": len(settings.affirmative_patterns),
            "negative_patterns": len(settings.negative_patterns),
        }
    )


@app.command()
def voices() -> None:
    """List synthesis voices and the one that would be preferred."""

    async def _body(assistant: NavigationVoiceAssistant) -> dict:
        selector = assistant.voice_selector
        return {
            "voices": [
                {"id": voice.id, "name": voice.name, "language": voice.language} for voice in selector.available
            ],
            "preferred": selector.preferred.name if selector.preferred else None,
        }

    print(_run(_body))


@app.command()
def say(
    text: str,
    high: bool = typer.Option(False, "--high", help="Speak at high priority, interrupting queued speech"),
) -> None:
    """Speak one message through the speech output queue."""

    async def _body(assistant: NavigationVoiceAssistant) -> None:
        assistant.speak(text, SpeechPriority.HIGH if high else SpeechPriority.NORMAL)

    _run(_body)
    print({"spoken": text})


@app.command()
def destinations(names: list[str] = typer.Argument(..., help="Ranked destination names")) -> None:
    """Announce the top three destinations."""

    async def _body(assistant: NavigationVoiceAssistant) -> None:
        assistant.read_top_destinations(names)

    _run(_body)
    print({"announced": names[:3]})


@app.command()
def confirm(names: list[str] = typer.Argument(..., help="Ranked destination names")) -> None:
    """Ask yes/no about each destination until one is selected."""

    async def _body(assistant: NavigationVoiceAssistant) -> str | None:
        resolved: asyncio.Future[str | None] = asyncio.get_running_loop().create_future()

        def _on_selected(destination: str | None) -> None:
            if not resolved.done():
                resolved.set_result(destination)

        if settings.auto_recognition:
            assistant.enable_auto_recognition()
        assistant.confirm_destinations(names, _on_selected)
        selection = await resolved
        assistant.disable_auto_recognition()
        return selection

    selected = _run(_body, with_recognizer=True)
    print({"selected": selected})
    if selected is None:
        raise typer.Exit(code=1)


@app.command()
def alert(clips: list[str] = typer.Argument(..., help="Audio clip files to play")) -> None:
    """Play alert clips through the deduplicating alert queue."""

    async def _body(assistant: NavigationVoiceAssistant) -> None:
        for clip in clips:
            assistant.enqueue_alert(clip)

    _run(_body, with_clip_player=True)
    print({"requested": clips})


if __name__ == "__main__":
    app()
