from hypertension_coach.components.conversation import Conversation, ReplySlot
from hypertension_coach.components.models import PatientInput
from hypertension_coach.components.risk_scorer import score


def test_fragments_extend_one_open_reply():
    conversation = Conversation()
    conversation.add_user("How much salt?")
    first = conversation.append_assistant("Less than ")
    second = conversation.append_assistant("5g a day.")

    assert first is second
    assert conversation.slot is ReplySlot.OPEN
    assert [m.role for m in conversation.messages] == ["user", "assistant"]
    assert conversation.messages[-1].content == "Less than 5g a day."


def test_user_message_closes_open_reply():
    conversation = Conversation()
    conversation.add_user("Hi")
    conversation.append_assistant("Namaste")
    conversation.add_user("Diet?")
    conversation.append_assistant("Dal")

    assert [m.content for m in conversation.messages] == ["Hi", "Namaste", "Diet?", "Dal"]
    assert conversation.messages[1].content == "Namaste"


def test_discard_removes_only_empty_reply():
    conversation = Conversation()
    conversation.add_user("Hi")
    conversation.append_assistant("")
    assert conversation.discard_empty_reply() is True
    assert [m.role for m in conversation.messages] == ["user"]
    assert conversation.slot is ReplySlot.NO_OPEN

    conversation.append_assistant("partial")
    assert conversation.discard_empty_reply() is False
    assert conversation.messages[-1].content == "partial"


def test_greeting_names_stage_and_risk(crisis_answers):
    conversation = Conversation()
    greeting = conversation.greet(score(PatientInput(**crisis_answers)))

    assert greeting.role == "assistant"
    assert "Risk Level: EMERGENCY (Stage: HYPERTENSIVE CRISIS)" in greeting.content
    assert "नमस्ते" in greeting.content
    assert conversation.greet() is None
    assert len(conversation) == 1


def test_greeting_without_assessment_asks_for_it():
    greeting = Conversation().greet()
    assert "Please complete the assessment first" in greeting.content


def test_payload_has_only_role_and_content():
    conversation = Conversation()
    conversation.add_user("Hi")
    assert conversation.to_payload() == [{"role": "user", "content": "Hi"}]
