"""Tests for the lumi CLI."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from lumi import __version__
from lumi.cli.main import app
from lumi.tasks.models import GenerationTask, TaskStatus

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_status_shows_queue_limits(test_settings):
    with patch("lumi.config.settings.get_settings", return_value=test_settings):
        result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "mock" in result.output
    assert "Concurrency" in result.output


def test_generate_prints_image_urls(test_settings):
    with patch("lumi.config.settings.get_settings", return_value=test_settings):
        result = runner.invoke(app, ["generate", "a red fox", "--count", "3"])
    assert result.exit_code == 0, result.output
    assert "3 images" in result.output
    assert "https://images.unsplash.com" in result.output


@pytest.mark.parametrize("count", ["0", "-1"])
def test_generate_rejects_non_positive_count(test_settings, count):
    with patch("lumi.config.settings.get_settings", return_value=test_settings):
        result = runner.invoke(app, ["generate", "a red fox", "--count", count])
    assert result.exit_code == 2
    assert test_settings.queue.images_per_task == 2


def test_generate_reports_failure(test_settings):
    test_settings.provider.provider = "siliconflow"
    test_settings.provider.api_key = ""
    with patch("lumi.config.settings.get_settings", return_value=test_settings):
        result = runner.invoke(app, ["generate", "a red fox"])
    assert result.exit_code == 1
    assert "Generation failed" in result.output


# -- tasks --------------------------------------------------------------------


def test_tasks_list_empty(task_store):
    with patch("lumi.cli.tasks_commands._get_store", return_value=task_store):
        result = runner.invoke(app, ["tasks", "list"])
    assert result.exit_code == 0
    assert "No tasks yet" in result.output


def test_tasks_list_and_show(task_store):
    task = task_store.add(GenerationTask(prompt="a lighthouse", status=TaskStatus.IMAGES_READY))
    task_store.append_artifact(task.id, "https://img.test/0.png", 0)

    with patch("lumi.cli.tasks_commands._get_store", return_value=task_store):
        listed = runner.invoke(app, ["tasks", "list"])
        shown = runner.invoke(app, ["tasks", "show", task.id])

    assert listed.exit_code == 0
    assert "images_ready" in listed.output
    assert shown.exit_code == 0
    assert "https://img.test/0.png" in shown.output


def test_tasks_show_missing(task_store):
    with patch("lumi.cli.tasks_commands._get_store", return_value=task_store):
        result = runner.invoke(app, ["tasks", "show", "nope"])
    assert result.exit_code == 1
    assert "Task not found" in result.output
