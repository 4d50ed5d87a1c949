"""Prompt templates for the Gemini scene, verse and narration calls."""

import json

from ..continuity import ContinuityConstraint
from ..models import VoiceProfile

VERSE_NOT_FOUND = "VERSE_NOT_FOUND"

STYLE_SUFFIX = (
    ", no estilo de um desenho da Pixar, personagens expressivos, "
    "iluminação cinematográfica, 3D, 4K, alto detalhe"
)

LANGUAGE_NAMES = {
    "pt-BR": "Português (Brasil)",
    "en-US": "Inglês (EUA)",
    "es-ES": "Espanhol (Espanha)",
    "fr-FR": "Francês (França)",
    "de-DE": "Alemão (Alemanha)",
}
DEFAULT_LANGUAGE = "pt-BR"

VOICES = {
    VoiceProfile.STANDARD_ADULT: "Puck",
    VoiceProfile.CHILD: "Kore",
}

CHILD_TONE_PREFIX = "Narração em tom de criança, com uma voz doce e clara: "

FRESH_CHARACTERS = (
    "Sua primeira tarefa é criar descrições detalhadas e reutilizáveis para cada personagem "
    "na cena. Seja específico sobre características faciais, cabelo, roupas, idade e físico "
    "para que possam ser recriados de forma idêntica."
)

CONTINUATION_CHARACTERS = (
    "Você DEVE usar as seguintes descrições de personagens para consistência: {characters}. "
    "Não altere essas descrições. Apenas personagens novos podem ser adicionados."
)

SCENE_TEMPLATE = """
Sua tarefa é analisar o versículo bíblico '{reference}' e gerar um objeto JSON para criar uma cena visual.
Sua prioridade máxima é a precisão teológica, histórica e a consistência visual dos personagens em cenas sequenciais.

{character_instructions}

Se o versículo bíblico solicitado não existir (por exemplo, o próximo versículo após o final de um capítulo), sua resposta JSON DEVE ser: {{ "error": "{verse_not_found}" }}. Não tente adivinhar ou criar conteúdo.

Baseado na sua análise e nas instruções de personagem, gere um objeto JSON com o seguinte formato:
{{
  "scenePrompt": "Um parágrafo único, detalhado e vívido, descrevendo a nova cena, o ambiente, a iluminação e a ação principal. Este será usado para gerar a imagem.",
  "characterDescriptions": [
    {{"name": "NomeDoPersonagem1", "description": "Descrição visual detalhada e reutilizável..."}},
    {{"name": "NomeDoPersonagem2", "description": "Descrição visual detalhada e reutilizável..."}}
  ]
}}

- Fidelidade bíblica na aparência: baseie-se estritamente em descrições bíblicas e no contexto histórico do antigo Oriente Médio. Infira características físicas a partir de detalhes narrativos (por exemplo, Eli é descrito como "velho e pesado" em 1 Samuel 4:18, então deve aparecer idoso e acima do peso). Evite representações eurocêntricas: os personagens devem ter traços do Oriente Médio, a menos que o texto diga o contrário.

- Regra de segurança (prioridade máxima): o prompt será usado por uma IA de imagem com filtros de segurança rigorosos.
  - NÃO descreva sangue, ferimentos, armas em uso, combate, morte explícita ou violência gráfica. Foque nas emoções, reações e no resultado da ação.
  - NÃO descreva nudez ou roupas reveladoras; use vestimentas modestas e historicamente apropriadas.
  - Evite as palavras "matar", "sangue", "ferida", "morte", "luta", "batalha", "arma", "nudez".

- JSON de saída: responda APENAS com o objeto JSON, sem texto ou formatação adicional. Ao continuar uma cena, a lista 'characterDescriptions' deve ser a mesma fornecida, a menos que um novo personagem seja introduzido.
"""

VERSE_TEXT_TEMPLATE = (
    "Forneça o texto completo de '{reference}' da Bíblia no idioma {language}. "
    "Responda apenas com o texto do versículo, sem introduções ou explicações adicionais."
)


def build_scene_prompt(reference: str, constraint: ContinuityConstraint) -> str:
    if constraint.is_continuation:
        characters = json.dumps(constraint.as_records(), ensure_ascii=False, indent=2)
        instructions = CONTINUATION_CHARACTERS.format(characters=characters)
    else:
        instructions = FRESH_CHARACTERS
    return SCENE_TEMPLATE.format(
        reference=reference,
        character_instructions=instructions,
        verse_not_found=VERSE_NOT_FOUND,
    )


def build_verse_text_prompt(reference: str, language_code: str) -> str:
    language = LANGUAGE_NAMES.get(language_code, LANGUAGE_NAMES[DEFAULT_LANGUAGE])
    return VERSE_TEXT_TEMPLATE.format(reference=reference, language=language)


def voice_for(profile: VoiceProfile) -> str:
    return VOICES[VoiceProfile(profile)]


def narration_input(text: str, profile: VoiceProfile) -> str:
    """Prefix the child tone instruction when narrating with the child voice."""
    if VoiceProfile(profile) is VoiceProfile.CHILD:
        return CHILD_TONE_PREFIX + text
    return text
