"""Localized user-facing messages keyed by error kind and operation."""

from .errors import ErrorKind
from .models import Operation

DEFAULT_LOCALE = "pt-BR"

_PT_BR = {
    ErrorKind.VERSE_NOT_FOUND: "Fim do capítulo. Inicie uma nova cena.",
    ErrorKind.TRANSIENT: (
        "Ocorreu um erro de comunicação com o servidor. "
        "Por favor, tente novamente em alguns instantes."
    ),
    ErrorKind.MALFORMED: "Falha ao processar a resposta da IA. O formato pode ser inválido.",
    ErrorKind.EMPTY_RESULT: (
        "Não foi possível obter o texto do versículo. "
        "Verifique a referência ou tente novamente."
    ),
    ErrorKind.NO_IMAGE: (
        "A imagem não pôde ser gerada. Isso pode ocorrer devido a filtros de segurança "
        "sobre o conteúdo da cena. Tente um versículo diferente ou uma nova cena com "
        "uma descrição menos explícita."
    ),
    ErrorKind.NO_AUDIO: "A API não retornou nenhum áudio. Tente um texto diferente.",
    ErrorKind.PRECONDITION: "Aguarde a operação atual terminar ou preencha o campo.",
    ErrorKind.SERVICE: {
        Operation.PROMPT: "Ocorreu um erro ao gerar o prompt. Tente um versículo diferente.",
        Operation.IMAGE: "Ocorreu um erro ao gerar a imagem. Por favor, tente novamente.",
        Operation.ADVANCE: "Falha ao gerar o próximo versículo.",
        Operation.VERSE: (
            "Ocorreu um erro ao buscar o texto. "
            "Verifique a referência ou tente novamente."
        ),
        Operation.NARRATION: "Ocorreu um erro ao gerar o áudio. Por favor, tente novamente.",
    },
}

_EN_US = {
    ErrorKind.VERSE_NOT_FOUND: "End of chapter. Start a new scene.",
    ErrorKind.TRANSIENT: (
        "There was a problem communicating with the server. "
        "Please try again in a few moments."
    ),
    ErrorKind.MALFORMED: "Failed to process the AI response. The format may be invalid.",
    ErrorKind.EMPTY_RESULT: (
        "Could not retrieve the verse text. "
        "Check the reference or try again."
    ),
    ErrorKind.NO_IMAGE: (
        "The image could not be generated. This can happen when safety filters "
        "block the scene content. Try a different verse or a new scene with a "
        "less explicit description."
    ),
    ErrorKind.NO_AUDIO: "The API returned no audio. Try a different text.",
    ErrorKind.PRECONDITION: "Wait for the current operation to finish or fill in the field.",
    ErrorKind.SERVICE: {
        Operation.PROMPT: "Failed to generate the prompt. Try a different verse.",
        Operation.IMAGE: "Failed to generate the image. Please try again.",
        Operation.ADVANCE: "Failed to generate the next verse.",
        Operation.VERSE: "Failed to fetch the text. Check the reference or try again.",
        Operation.NARRATION: "Failed to generate the audio. Please try again.",
    },
}

MESSAGES = {
    "pt-BR": _PT_BR,
    "en-US": _EN_US,
}


def localized_message(kind: ErrorKind, operation: Operation, locale: str = DEFAULT_LOCALE) -> str:
    """Return the message shown for a classified failure of ``operation``."""
    table = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    entry = table[kind]
    if isinstance(entry, dict):
        return entry[operation]
    return entry
