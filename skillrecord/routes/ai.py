from flask import Blueprint, request, jsonify, Response, stream_with_context
import logging
import json

from ..errors import ServiceUnavailable
from ..utils.permissions import requires
from ..utils.validators import text_field, choice_field, raise_for
from ..utils.ai_client import AIChatClient, AIClientError, build_system_prompt
from ..utils import career

logger = logging.getLogger(__name__)

ai_bp = Blueprint('ai', __name__)

LANGUAGES = ('ar', 'en')


def sse(payload):
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


@ai_bp.route('/ai/chat', methods=['POST'])
@requires()
def chat(principal):
    """Relay the assistant's answer as Server-Sent Events"""
    if not AIChatClient.is_configured():
        raise ServiceUnavailable('AI service is not configured')

    data = request.get_json(silent=True) or {}
    errors = {}
    message = text_field(data, 'message', errors, required=True)
    language = choice_field(data, 'language', errors, LANGUAGES, default='ar')
    raise_for(errors)

    system_prompt = build_system_prompt(principal, language)
    client = AIChatClient()
    user_id = principal.id

    def generate():
        try:
            for content in client.stream_chat(system_prompt, message):
                yield sse({'content': content})
            yield sse({'done': True})
        except AIClientError as e:
            logger.error(f"AI chat failed for {user_id}: {str(e)}")
            yield sse({'error': 'AI error'})

    response = Response(stream_with_context(generate()), mimetype='text/event-stream')
    response.headers['Cache-Control'] = 'no-cache'
    response.headers['X-Accel-Buffering'] = 'no'
    return response


@ai_bp.route('/career/analyze', methods=['POST'])
@requires()
def analyze_career(principal):
    data = request.get_json(silent=True) or {}
    answers = data.get('answers')
    valid = isinstance(answers, list) and all(
        isinstance(item, dict)
        and isinstance(item.get('question_id'), int)
        and not isinstance(item.get('question_id'), bool)
        and isinstance(item.get('answer'), str)
        for item in answers
    )
    if not valid:
        raise_for({'answers': "Must be a list of {question_id, answer} objects."})

    result = career.analyze([item['answer'] for item in answers])
    logger.info(f"Career analysis for {principal.id}: {result['suggested_major']}")
    return jsonify(result)
