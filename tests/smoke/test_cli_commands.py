"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(
    args: list[str], input_text: str | None = None, env: dict | None = None, timeout: int = 30
) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m recall.cli.main'
        input_text: Text piped to stdin for interactive prompts
        env: Extra environment variables
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    result = subprocess.run(
        [sys.executable, "-m", "recall.cli.main", *args],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        input=input_text,
        env={**os.environ, **(env or {})},
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def questions_file(tmp_path, question_payloads):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps({"questions": question_payloads}), encoding="utf-8")
    return path


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command(["--help"])

        assert code == 0, f"Help failed: {stderr}"
        assert "recall" in stdout.lower()
        assert "Commands" in stdout

    @pytest.mark.parametrize("command", ["intervals", "resolve", "shuffle", "quiz", "load", "review"])
    def test_command_help(self, command):
        code, stdout, stderr = run_cli_command([command, "--help"])
        assert code == 0, f"{command} help failed: {stderr}"


class TestSchedulingCommands:
    def test_intervals(self):
        code, stdout, stderr = run_cli_command(["intervals", "360000"])

        assert code == 0, f"intervals failed: {stderr}"
        for expected in ("again", "hard", "good", "easy", "1500", "10 hr"):
            assert expected in stdout


class TestQuestionCommands:
    def test_resolve(self, questions_file):
        code, stdout, stderr = run_cli_command(["resolve", str(questions_file)])

        assert code == 0, f"resolve failed: {stderr}"
        assert "Paris" in stdout
        assert "255.255.255.0" in stdout

    def test_resolve_missing_file(self, tmp_path):
        code, stdout, _ = run_cli_command(["resolve", str(tmp_path / "missing.json")])
        assert code == 1
        assert "not found" in stdout

    def test_shuffle_is_stable(self, questions_file):
        args = ["shuffle", str(questions_file), "-c", "c1", "-l", "l1"]
        first = run_cli_command(args)
        second = run_cli_command(args)

        assert first[0] == 0, f"shuffle failed: {first[2]}"
        assert first[1] == second[1]
        assert "Madrid" in first[1]

    def test_quiz_eliminates_until_correct(self, tmp_path, capital_question_payload):
        path = tmp_path / "one.json"
        path.write_text(json.dumps([capital_question_payload]), encoding="utf-8")

        code, stdout, stderr = run_cli_command(["quiz", str(path)], input_text="A\nB\nC\nD\n")

        assert code == 0, f"quiz failed: {stderr}"
        assert "Correct!" in stdout
        assert "Review complete" in stdout


class TestStoreCommands:
    def test_load_then_review_empty(self, tmp_path):
        content = tmp_path / "course.json"
        content.write_text(
            json.dumps(
                {
                    "seconds_to_complete": 7200,
                    "flashcards": [
                        {"id": "f1", "front": "Q", "back": "A", "next_show_timestamp": "2999-01-01T00:00:00Z"}
                    ],
                    "questions": [],
                }
            ),
            encoding="utf-8",
        )
        env = {
            "RECALL_STORE_BACKEND": "sql",
            "RECALL_DATABASE_URL": f"sqlite:///{tmp_path / 'recall.db'}",
        }

        code, stdout, stderr = run_cli_command(["load", "c1", str(content)], env=env)
        assert code == 0, f"load failed: {stderr}"
        assert "Imported 1 flashcards" in stdout

        code, stdout, stderr = run_cli_command(["review", "c1"], env=env)
        assert code == 0, f"review failed: {stderr}"
        assert "No flashcards due" in stdout

    def test_review_one_card(self, tmp_path):
        content = tmp_path / "course.json"
        content.write_text(
            json.dumps({"flashcards": [{"id": "f1", "front": "Front text", "back": "Back text"}]}),
            encoding="utf-8",
        )
        env = {
            "RECALL_STORE_BACKEND": "sql",
            "RECALL_DATABASE_URL": f"sqlite:///{tmp_path / 'recall.db'}",
        }
        run_cli_command(["load", "c1", str(content)], env=env)

        code, stdout, stderr = run_cli_command(["review", "c1"], input_text="\n3\n", env=env)

        assert code == 0, f"review failed: {stderr}"
        assert "Back text" in stdout
        assert "Reviewed 1 flashcards" in stdout

    def test_quiz_from_store_records_correct_answer(self, tmp_path, capital_question_payload):
        content = tmp_path / "course.json"
        content.write_text(json.dumps({"questions": [capital_question_payload]}), encoding="utf-8")
        env = {
            "RECALL_STORE_BACKEND": "sql",
            "RECALL_DATABASE_URL": f"sqlite:///{tmp_path / 'recall.db'}",
        }
        run_cli_command(["load", "c1", str(content)], env=env)

        # Each answer is followed by "n": rejected by the answer prompt, it
        # declines the flag prompt once the correct option is chosen.
        code, stdout, stderr = run_cli_command(
            ["quiz", "-c", "c1"], input_text="A\nn\nB\nn\nC\nn\nD\nn\n", env=env
        )
        assert code == 0, f"quiz failed: {stderr}"
        assert "Correct!" in stdout

        code, stdout, stderr = run_cli_command(["quiz", "-c", "c1"], env=env)
        assert code == 0, f"quiz failed: {stderr}"
        assert "No gradable questions found" in stdout

    def test_quiz_without_file_needs_course(self):
        code, stdout, _ = run_cli_command(["quiz"])
        assert code == 1
        assert "--course" in stdout
