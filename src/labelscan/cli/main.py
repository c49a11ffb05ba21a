from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Callable, Sequence, Tuple

from ..config import load_analysis_config, load_chat_config
from ..domain.models import ScanResult
from ..domain.presentation import as_text_list, classify_highlight, display_score, score_label
from ..errors import LabelScanError
from ..flow import ChatSession, ViewController
from ..gateway.analysis import AnalysisGateway
from ..gateway.chat import ChatGateway
from ..images import image_data_url
from ..logging import configure, get_logger
from ..paths import expand_abs, find_project_root
from ..profile.onboarding import (
    COMMON_ALLERGIES,
    COMMON_CONDITIONS,
    DIETARY_PREFERENCES,
    OnboardingWizard,
)
from ..profile.store import ProfileStore

LOG = get_logger("cli-main")

_HIGHLIGHT_MARKS = {"warning": "!", "positive": "+", "neutral": "-"}


def _print_result(result: ScanResult) -> None:
    score = display_score(result.score)
    print(f"{score_label(score)} Health Score: {score}/100")
    if result.summary:
        print(f"\n{result.summary}")
    highlights = as_text_list(result.highlights)
    if highlights:
        print("\nHighlights:")
        for h in highlights:
            print(f"  {_HIGHLIGHT_MARKS[classify_highlight(h)]} {h}")
    ingredients = as_text_list(result.ingredients)
    if ingredients:
        print("\nIngredients: " + ", ".join(ingredients))


def _ask(prompt: str) -> str:
    try:
        return input(prompt).strip()
    except EOFError:
        return ""


def _pick_labels(title: str, choices: Tuple[str, ...], toggle: Callable[[str], None]) -> None:
    print(f"{title}:")
    for idx, label in enumerate(choices, start=1):
        print(f"  {idx}. {label}")
    raw = _ask("Numbers, comma separated (blank for none): ")
    for token in raw.split(","):
        token = token.strip()
        if token.isdigit() and 1 <= int(token) <= len(choices):
            toggle(choices[int(token) - 1])


def _run_wizard(controller: ViewController) -> int:
    wizard = OnboardingWizard(initial=controller.profile)
    controller.get_started()
    while True:
        print(f"\nStep {wizard.step}/3: {wizard.title}")
        if wizard.step == 1:
            wizard.update(
                name=_ask("Name: ") or wizard.profile.name,
                age=_ask("Age: ") or wizard.profile.age,
                weight=_ask("Weight (optional): ") or wizard.profile.weight,
                height=_ask("Height (optional): ") or wizard.profile.height,
            )
            if not wizard.can_proceed():
                LOG.warning("Name and age are required.")
                continue
        elif wizard.step == 2:
            _pick_labels("Common allergies", COMMON_ALLERGIES, wizard.toggle_allergy)
            wizard.update(custom_allergies=_ask("Other allergies: "))
            _pick_labels("Health conditions", COMMON_CONDITIONS, wizard.toggle_condition)
            wizard.update(custom_conditions=_ask("Other conditions: "))
        else:
            _pick_labels("Dietary preferences", DIETARY_PREFERENCES, wizard.toggle_preference)
        profile = wizard.next()
        if profile is not None:
            controller.complete_profile(profile)
            print(json.dumps(profile.as_dict(), ensure_ascii=False, indent=2))
            return 0


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="labelscan",
        description="Scan food labels with a hosted vision model and chat about the results.",
    )
    parser.add_argument("--root", help="Project root holding .env and var/ (default: auto-detect from cwd)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the analysis and chat HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (development only)")
    serve.add_argument("--log-level", help="Log level for uvicorn and labelscan (default: LOG_LEVEL or info)")

    def _serve(ns: argparse.Namespace) -> int:
        import uvicorn

        from ..api import create_app

        log_level = (ns.log_level or os.environ.get("LOG_LEVEL") or "info").lower()
        configure(log_level, os.environ.get("LOG_FILE"))

        if ns.reload:
            # uvicorn needs an import string to reload; the factory reads the root from cwd.
            uvicorn.run(
                "labelscan.api:create_app",
                factory=True,
                host=ns.host,
                port=ns.port,
                reload=True,
                log_level=log_level,
            )
            return 0
        uvicorn.run(create_app(root_dir=ns.root), host=ns.host, port=ns.port, log_level=log_level)
        return 0

    serve.set_defaults(handler=_serve)

    analyze = subparsers.add_parser("analyze", help="Analyze one food-label image with the stored profile.")
    analyze.add_argument("--image", required=True, help="Path to the label photo (JPG/PNG, max 4MB)")
    analyze.add_argument("--json", action="store_true", help="Print the raw result JSON")

    def _analyze(ns: argparse.Namespace) -> int:
        root = find_project_root(ns.root)
        profile = ProfileStore(root).load()
        if profile is None:
            LOG.info("No stored profile; analyzing without personalization. Run 'labelscan profile init' to add one.")
        gateway = AnalysisGateway(load_analysis_config(root))
        try:
            result = gateway.analyze_food(image_data_url(expand_abs(ns.image)), profile)
        except LabelScanError as exc:
            LOG.error(exc.message)
            return 1
        if ns.json:
            print(json.dumps(result.as_dict(), ensure_ascii=False, indent=2))
        else:
            _print_result(result)
        return 0

    analyze.set_defaults(handler=_analyze)

    chat = subparsers.add_parser("chat", help="Chat with the Health Assistant.")
    chat.add_argument("--scan-json", help="Path to a saved result JSON (from 'analyze --json') to ground the chat")

    def _chat(ns: argparse.Namespace) -> int:
        root = find_project_root(ns.root)
        scan = None
        if ns.scan_json:
            try:
                with open(expand_abs(ns.scan_json), "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as exc:
                LOG.error(f"Could not read scan result {ns.scan_json}: {exc}")
                return 2
            if not isinstance(data, dict):
                LOG.error(f"{ns.scan_json} does not hold a scan result object")
                return 2
            scan = ScanResult.from_dict(data)
        session = ChatSession(ChatGateway(load_chat_config(root)), scan_context=scan)
        print(session.messages[0].content)
        while True:
            text = _ask("> ")
            if not text or text.lower() in {"exit", "quit"}:
                return 0
            try:
                reply = session.send(text)
            except LabelScanError as exc:
                LOG.error(f"Chat error: {exc.message}")
                continue
            print(reply.content)

    chat.set_defaults(handler=_chat)

    profile = subparsers.add_parser("profile", help="Show or create the stored health profile.")
    profile_sub = profile.add_subparsers(dest="profile_cmd", required=True)

    def _profile_show(ns: argparse.Namespace) -> int:
        stored = ProfileStore(find_project_root(ns.root)).load()
        if stored is None:
            LOG.error("No profile stored yet. Run 'labelscan profile init'.")
            return 1
        print(json.dumps(stored.as_dict(), ensure_ascii=False, indent=2))
        return 0

    profile_sub.add_parser("show", help="Print the stored profile").set_defaults(handler=_profile_show)

    def _profile_init(ns: argparse.Namespace) -> int:
        root = find_project_root(ns.root)
        return _run_wizard(ViewController(ProfileStore(root)))

    profile_sub.add_parser("init", help="Run the onboarding wizard").set_defaults(handler=_profile_init)

    args = parser.parse_args(provided)
    code = args.handler(args)
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
