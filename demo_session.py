#!/usr/bin/env python3
"""
Complete Session Demo: Load → Fill → Reload → Submit

Shows the full workflow offline:
1. Load the example form and analyze it
2. Fill personal information and the first section
3. Simulate a reload and restore the saved progress
4. Complete the remaining sections and submit
"""

import asyncio
import json
import tempfile
from pathlib import Path

from formsession.analyzer import analyze_form
from formsession.config import Settings, configure_logging
from formsession.controller import FormSessionController
from formsession.examples import StaticFormService, build_example_form
from formsession.persistence import PersistenceManager


async def main():
    configure_logging()
    form = build_example_form()
    service = StaticFormService([form])
    settings = Settings(storage_dir=Path(tempfile.mkdtemp(prefix="formsession-")))
    persistence = PersistenceManager.from_settings(settings)

    print("=" * 80)
    print("SESSION DEMO: Load → Fill → Reload → Submit")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Load and analyze
    # =========================================================================
    print("\n1. LOADING FORM...")
    session = FormSessionController(form.id, service, persistence, settings=settings)
    await session.load()
    report = analyze_form(session.form)
    print(f"   ✓ Loaded form: {session.form.title}")
    print(f"   ✓ Sections: {report.total_sections}")
    print(f"   ✓ Questions: {report.total_questions} ({report.required_questions} required)")
    print(f"   ✓ Types: {report.type_counts}")
    for warning in report.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 2: Personal info and first section
    # =========================================================================
    print("\n2. FILLING FIRST PAGES...")
    session.update_respondent(name="Ann", email="bad-email", role="board")
    moved = await session.next()
    print(f"   ✓ Invalid email rejected: {not moved} ({session.navigator.message.text})")

    session.update_respondent(email="ann@example.org")
    await session.next()
    print(f"   ✓ Now on: {session.form.sections[session.navigator.position].title}")

    session.set_answer("q-vision", value=4, comment="Clear and consistent")
    session.set_answer("q-overall", value=5)
    await session.next()
    print(f"   ✓ Progress: {session.navigator.progress():.0f}%")

    # =========================================================================
    # STEP 3: Reload
    # =========================================================================
    print("\n3. SIMULATING RELOAD...")
    session = FormSessionController(form.id, service, persistence, settings=settings)
    await session.load()
    print(f"   ✓ Restored: {session.restored}")
    print(f"   ✓ Position: {session.navigator.position}")
    print(f"   ✓ q-vision: {session.store.get('q-vision')}")

    # =========================================================================
    # STEP 4: Complete and submit
    # =========================================================================
    print("\n4. COMPLETING AND SUBMITTING...")
    session.set_answer("q-focus", value="Programs")
    session.set_answer("q-channels", value=["Phone", "Email"])
    session.set_answer("q-tenure", value=0)
    await session.next()
    session.set_answer("q-recommend", value="yes")
    submitted = await session.submit()
    print(f"   ✓ Submitted: {submitted}")
    print(f"   ✓ Closing message: {session.closing_message}")
    print(f"   ✓ Snapshot cleared: {persistence.load(form.id) is None}")

    print("\n5. WIRE PAYLOAD:")
    print("-" * 80)
    print(json.dumps(service.submissions[-1], indent=2))
    print("=" * 80)


if __name__ == "__main__":
    asyncio.run(main())
