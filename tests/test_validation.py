"""Tests for payload validation."""

import uuid

import pytest

from scriptboard.guards import (
    CollaboratorInput,
    ProjectInput,
    validate_generate_script_input,
    validate_input,
    validate_scene_input,
    validate_share_link_input,
)
from scriptboard.models import Role


def scene_payload(**overrides):
    scene = {
        "sceneNumber": 1,
        "duration": "10 seconds",
        "voiceOver": "Hello",
        "visualDescription": "A sunrise over the harbour",
    }
    scene.update(overrides)
    return {"scene": scene}


def test_topic_accepted_and_trimmed():
    topic = "x" * 500

    result = validate_generate_script_input({"topic": f"  {topic}  "})

    assert result.success
    assert result.data.topic == topic
    assert result.error is None


def test_topic_too_short():
    result = validate_generate_script_input({"topic": "ab"})

    assert not result.success
    assert "at least 3 characters" in result.error


def test_topic_too_long():
    result = validate_generate_script_input({"topic": "x" * 1001})

    assert not result.success
    assert "less than 1000 characters" in result.error


def test_topic_with_script_tag_rejected():
    for topic in ["<script>alert(1)</script>", "cats <ScRiPt src=x>", "a < b script"]:
        result = validate_generate_script_input({"topic": topic})
        assert not result.success, topic
        assert "Invalid characters" in result.error


def test_topic_missing_or_wrong_type():
    assert not validate_generate_script_input({}).success
    assert not validate_generate_script_input({"topic": 42}).success


def test_non_object_body_rejected():
    for body in [None, "topic", ["topic"], 3]:
        result = validate_generate_script_input(body)
        assert not result.success
        assert result.error == "Invalid request body"


def test_scene_accepted():
    result = validate_scene_input(scene_payload(notes="Use drone"))

    assert result.success
    assert result.data.scene.scene_number == 1
    assert result.data.scene.notes == "Use drone"


def test_scene_defaults_optional_text():
    result = validate_scene_input({"scene": {"sceneNumber": 2, "visualDescription": "Close up"}})

    assert result.success
    assert result.data.scene.duration == ""
    assert result.data.scene.voice_over == ""


def test_scene_rejects_bad_fields():
    assert not validate_scene_input(scene_payload(sceneNumber=0)).success
    assert not validate_scene_input(scene_payload(sceneNumber="1")).success
    assert not validate_scene_input(scene_payload(visualDescription="   ")).success
    assert not validate_scene_input(scene_payload(visualDescription="x" * 2001)).success
    assert not validate_scene_input({"scene": "not a scene"}).success


def test_scene_error_names_the_field():
    result = validate_scene_input(scene_payload(visualDescription=""))

    assert "visualDescription" in result.error
    assert "Visual description is required" in result.error


def test_share_link_input():
    project_id = str(uuid.uuid4())

    result = validate_share_link_input({"project_id": project_id, "expires_in_days": 7})
    assert result.success
    assert result.data.expires_in_days == 7

    result = validate_share_link_input({"project_id": project_id, "expires_in_days": None})
    assert result.success
    assert result.data.expires_in_days is None


def test_share_link_rejects_bad_project_id():
    result = validate_share_link_input({"project_id": "not-a-uuid"})
    assert result.error.endswith("Invalid project ID format")

    result = validate_share_link_input({"project_id": ""})
    assert result.error.endswith("Project ID is required")


def test_share_link_rejects_bad_expiry():
    project_id = str(uuid.uuid4())
    for days in [0, 366, -1, "7", 1.5]:
        result = validate_share_link_input({"project_id": project_id, "expires_in_days": days})
        assert not result.success, days


def test_collaborator_input():
    result = validate_input(CollaboratorInput, {"user_id": " user-2 ", "role": "editor"})

    assert result.success
    assert result.data.user_id == "user-2"
    assert result.data.role == Role.EDITOR
    assert not validate_input(CollaboratorInput, {"user_id": "u", "role": "owner"}).success


def test_project_input_requires_script():
    assert not validate_input(ProjectInput, {"topic": "coffee"}).success

    result = validate_input(
        ProjectInput,
        {
            "topic": "coffee",
            "script": {"title": "Coffee", "scenes": [scene_payload()["scene"]]},
            "storyboard_images": [{"sceneNumber": 1, "imageUrl": "https://example.com/1.png"}],
        },
    )
    assert result.success
    assert result.data.storyboard_images[0].image_url == "https://example.com/1.png"


@pytest.mark.parametrize("image_url", ["/etc/passwd", "file:///etc/passwd", "scene-1.png"])
def test_project_input_rejects_non_remote_images(image_url):
    result = validate_input(
        ProjectInput,
        {
            "topic": "coffee",
            "script": {"title": "Coffee", "scenes": [scene_payload()["scene"]]},
            "storyboard_images": [{"sceneNumber": 1, "imageUrl": image_url}],
        },
    )

    assert not result.success
    assert result.error.startswith("storyboard_images:")
    assert "http(s) URL or data URI" in result.error
