"""
Vision API endpoint constants and configuration.

Centralizing these values makes it easy to swap the model or API version.
"""


class GeminiEndpoints:
    """Generative Language API endpoint paths."""

    API_VERSION = "v1beta"
    GENERATE_CONTENT = f"/{API_VERSION}/models/{{model}}:generateContent"

    @classmethod
    def generate_content(cls, model: str) -> str:
        """
        Get the generateContent endpoint for a model.

        Args:
            model: Model name, e.g. "gemini-2.0-flash"

        Returns:
            Formatted endpoint path
        """
        return cls.GENERATE_CONTENT.format(model=model)


class APIConstants:
    """General API configuration constants."""

    CONTENT_TYPE_JSON = "application/json"
    CONTENT_TYPE_JPEG = "image/jpeg"

    # Length of the raw reply kept in the assessment reasoning when no JSON is found
    REASONING_EXCERPT_CHARS = 200


ASSESSMENT_PROMPT = """
Você é um especialista em agricultura e análise de imagens de satélite. Analise esta imagem detalhadamente.

TAREFAS:
1. CLASSIFICAÇÃO: É fazenda/rural ou cidade/urbana?
2. IDENTIFICAÇÃO DE CULTURAS: Se for fazenda, que tipo de plantação você vê?
3. SAÚDE DAS PLANTAS: Como está a vegetação?
4. PROBLEMAS: Vê algum problema na área?
5. PADRÕES: Descreva os padrões que identifica
6. ESTÁGIO: Se for cultura, em que estágio está?

CULTURAS POSSÍVEIS NO BRASIL:
- Soja, Milho, Cana-de-açúcar, Café, Algodão, Arroz, Feijão, Trigo
- Pastagem, Eucalipto, Citros, Banana, Tomate, Batata
- Hortaliças, Flores, Fruticultura

Responda em JSON:
{
  "classification": "urban" ou "rural",
  "confidence": 0.1-1.0,
  "cropIdentification": {
    "primaryCrop": "nome da cultura principal ou 'unknown'",
    "secondaryCrop": "cultura secundária se houver",
    "confidence": 0.1-1.0,
    "growthStage": "plantio/crescimento/floração/colheita/pousio",
    "reasoning": "por que identificou essa cultura"
  },
  "healthAssessment": {
    "overallHealth": "excelente/boa/regular/ruim/crítica",
    "vegetationDensity": "alta/média/baixa",
    "colorPattern": "verde intenso/verde normal/amarelado/marrom/misto",
    "uniformity": "uniforme/irregular/muito irregular"
  },
  "problemsDetected": ["seca, pragas, doenças, solo exposto, etc"],
  "patterns": {
    "fieldShape": "regular/irregular/circular/retangular",
    "plantingPattern": "fileiras/aleatório/circular/terraceado",
    "irrigationSigns": true/false,
    "machineryMarks": true/false
  },
  "recommendations": ["recomendações baseadas no que observou"],
  "reasoning": "explicação detalhada do que você viu",
  "details": "descrição completa da imagem"
}
"""
