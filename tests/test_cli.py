"""
Tests for the command line interface.
"""

import json
import pytest
from unittest.mock import patch, MagicMock
from pymongo.errors import ServerSelectionTimeoutError
from typer.testing import CliRunner

from ideaforge.errors import QuotaExceeded, StorageUnavailable, UsageLedgerUnavailable
from ideaforge.main import app
from ideaforge.models.conversation import Continuing, Done
from ideaforge.models.idea import AppIdea
from ideaforge.models.usage import OperationKind
from ideaforge.orchestrator import ConversationOrchestrator
from ideaforge.usage_ledger import InMemoryUsageLedger
from ideaforge.utils.config import config

runner = CliRunner()


@pytest.fixture
def mock_mongodb_client():
    """Fixture patching the MongoDB client used by the commands."""
    with patch('ideaforge.main.MongoDBClient') as mock_client:
        mongodb_client = MagicMock()
        mock_client.return_value.__enter__.return_value = mongodb_client
        yield mongodb_client


@pytest.fixture
def mock_factory():
    """Fixture patching the service factory used by the commands."""
    with patch('ideaforge.main.factory') as factory:
        yield factory


@pytest.fixture
def ledger():
    return InMemoryUsageLedger()


@pytest.fixture
def prompt_file(tmp_path):
    path = tmp_path / "prompt.txt"
    path.write_text("Build a habit tracker", encoding="utf-8")
    return path


class TestEnhanceCommand:
    """Tests for the enhance command."""

    def test_interactive_session(self, mock_mongodb_client, mock_factory, ledger, prompt_file, tmp_path):
        endpoint = MagicMock()
        endpoint.analyze.return_value = Continuing(message="Who is it for?")
        endpoint.continue_conversation.return_value = Done(artifact="# StreakNest")
        mock_factory.create_enhancement_session.side_effect = lambda subject, prompt, services, usage_ledger: (
            ConversationOrchestrator(endpoint, ledger, subject, prompt, sleep=MagicMock())
        )
        output = tmp_path / "enhanced.md"

        result = runner.invoke(app, ["enhance", str(prompt_file), "--user", "user-1", "--output", str(output)],
                               input="Busy parents\n")

        assert result.exit_code == 0
        assert "Who is it for?" in result.stdout
        assert output.read_text(encoding="utf-8") == "# StreakNest"
        assert ledger.count_today("user-1", OperationKind.ENHANCEMENT) == 1

    def test_quota_exceeded(self, mock_mongodb_client, mock_factory, prompt_file):
        mock_factory.create_enhancement_session.return_value.start.side_effect = QuotaExceeded("No more today")

        result = runner.invoke(app, ["enhance", str(prompt_file), "--user", "user-1"])

        assert result.exit_code == 1
        assert "No more today" in result.stdout

    def test_abort_closes_session(self, mock_mongodb_client, mock_factory, ledger, prompt_file):
        endpoint = MagicMock()
        endpoint.analyze.return_value = Continuing(message="Who is it for?")
        session = ConversationOrchestrator(endpoint, ledger, "user-1", "Build a habit tracker", sleep=MagicMock())
        mock_factory.create_enhancement_session.return_value = session

        # No input: the prompt hits end of file and aborts
        result = runner.invoke(app, ["enhance", str(prompt_file), "--user", "user-1"], input="")

        assert result.exit_code == 1
        assert session.state.value == "closed"
        assert ledger.count_today("user-1", OperationKind.ENHANCEMENT) == 0


class TestValidateCommand:
    """Tests for the validate command."""

    def test_renders_scorecard(self, mock_mongodb_client, mock_factory):
        from ideaforge.models.validation import ValidationScorecard

        mock_factory.create_validation_flow.return_value.run.return_value = ValidationScorecard.model_validate({
            "scores": {
                "marketNeed": {"score": 4, "reason": "Niche"},
                "competition": {"score": 4, "reason": "Crowded"},
                "monetization": {"score": 4, "reason": "Hard"},
                "feasibility": {"score": 4, "reason": "Hard"},
            },
            "yourEdge": "None yet",
            "biggestRisk": "No demand",
            "quickWin": "Talk to users",
            "pivotSuggestions": ["Target nurses"],
        })

        result = runner.invoke(app, ["validate", "--user", "user-1", "--name", "StreakNest", "--idea-id", "idea-1"])

        assert result.exit_code == 0
        assert "PIVOT" in result.stdout
        assert "Target nurses" in result.stdout
        idea, = mock_factory.create_validation_flow.return_value.run.call_args[0]
        assert idea.name == "StreakNest"
        assert mock_factory.create_validation_flow.return_value.run.call_args.kwargs == {"idea_id": "idea-1"}


class TestUsageCommand:
    """Tests for the usage command."""

    def test_remaining(self, mock_mongodb_client, mock_factory, ledger):
        ledger.record("user-1", OperationKind.VALIDATION)
        mock_factory.create_usage_ledger.return_value = ledger
        mock_factory.daily_limits.return_value = {OperationKind.ENHANCEMENT: 3, OperationKind.VALIDATION: 3}

        result = runner.invoke(app, ["usage", "--user", "user-1"])

        assert result.exit_code == 0
        assert "enhancement: 3/3 remaining today" in result.stdout
        assert "validation: 2/3 remaining today" in result.stdout


class TestIdeaCommands:
    """Tests for the saved idea commands."""

    def test_generate_idea(self, mock_factory):
        mock_factory.create_services.return_value.generation.generate_idea.return_value = AppIdea(
            name="PlantPal", purpose="Water plants"
        )

        result = runner.invoke(app, ["idea"])

        assert result.exit_code == 0
        assert "PlantPal" in result.stdout

    def test_save_idea(self, mock_mongodb_client):
        mock_mongodb_client.save_idea.return_value = "idea-1"

        result = runner.invoke(app, ["save-idea", "--user", "user-1", "--name", "PlantPal"])

        assert result.exit_code == 0
        assert "idea-1" in result.stdout
        saved, user = mock_mongodb_client.save_idea.call_args[0]
        assert saved["name"] == "PlantPal"
        assert saved["id"] is None
        assert user == "user-1"

    def test_list_ideas_empty(self, mock_mongodb_client):
        mock_mongodb_client.list_ideas.return_value = []

        result = runner.invoke(app, ["list-ideas", "--user", "user-1"])

        assert "No saved ideas yet." in result.stdout

    def test_delete_missing_idea(self, mock_mongodb_client):
        mock_mongodb_client.delete_idea.return_value = False

        result = runner.invoke(app, ["delete-idea", "idea-1", "--user", "user-1"])

        assert result.exit_code == 1

    def test_show_cached_scorecard(self, mock_mongodb_client):
        mock_mongodb_client.fetch_validation.return_value = json.loads(json.dumps({
            "overallScore": 73,
            "verdict": "GO",
            "scores": {
                "marketNeed": {"score": 8, "reason": "Demand"},
                "competition": {"score": 6, "reason": "Some"},
                "monetization": {"score": 7, "reason": "Subscriptions"},
                "feasibility": {"score": 8, "reason": "Simple"},
            },
            "yourEdge": "Family streaks",
            "biggestRisk": "Retention",
            "quickWin": "Landing page",
            "pivotSuggestions": [],
        }))

        result = runner.invoke(app, ["scorecard", "idea-1"])

        assert result.exit_code == 0
        assert "73" in result.stdout
        assert "GO" in result.stdout


class TestStoreUnavailable:
    """Tests for commands run while MongoDB cannot be reached."""

    @pytest.fixture
    def unreachable_mongo(self):
        with patch('ideaforge.utils.mongodb_client.MongoClient') as mock_client:
            database = mock_client.return_value.__getitem__.return_value
            database.__getitem__.return_value.create_index.side_effect = ServerSelectionTimeoutError(
                "127.0.0.1:1: [Errno 111] Connection refused"
            )
            yield mock_client

    @pytest.mark.parametrize("args", [
        ["validate", "--user", "user-1", "--name", "StreakNest"],
        ["usage", "--user", "user-1"],
    ])
    def test_quota_commands_fail_closed(self, unreachable_mongo, mock_factory, args):
        result = runner.invoke(app, args)

        assert result.exit_code == 1
        assert not isinstance(result.exception, ServerSelectionTimeoutError)
        assert UsageLedgerUnavailable.default_message in result.stdout
        mock_factory.create_services.assert_not_called()
        unreachable_mongo.return_value.close.assert_called_once()

    def test_enhance_fails_closed(self, unreachable_mongo, mock_factory, prompt_file):
        result = runner.invoke(app, ["enhance", str(prompt_file), "--user", "user-1"])

        assert result.exit_code == 1
        assert UsageLedgerUnavailable.default_message in result.stdout
        mock_factory.create_enhancement_session.assert_not_called()

    def test_saved_idea_commands(self, unreachable_mongo):
        result = runner.invoke(app, ["list-ideas", "--user", "user-1"])

        assert result.exit_code == 1
        assert StorageUnavailable.default_message in result.stdout

    def test_failure_after_connecting(self, mock_mongodb_client):
        mock_mongodb_client.list_ideas.side_effect = ServerSelectionTimeoutError("connection reset")

        result = runner.invoke(app, ["list-ideas", "--user", "user-1"])

        assert result.exit_code == 1
        assert StorageUnavailable.default_message in result.stdout


class TestProviderConfiguration:
    """Tests for commands run with a bad model provider."""

    def test_unsupported_provider(self):
        with patch.object(config, "model_provider", "llama"):
            result = runner.invoke(app, ["name", "Reminds you to water your plants"])

        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)
        assert "Unsupported model provider: llama" in result.stdout


if __name__ == "__main__":
    # This allows running the tests directly with python
    import sys
    sys.exit(pytest.main(["-v", __file__]))
