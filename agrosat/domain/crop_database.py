"""
Reference catalog of Brazilian crops and their spectral signatures.

Profiles are built once at import time and never mutated. The matching
function scores every profile against observed NDVI/EVI/SAVI means.
"""
import logging
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpectralRange:
    min: float
    max: float
    optimal: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def closeness(self, value: float) -> float:
        """1 at the optimal value, decreasing linearly, never negative."""
        return max(0.0, 1.0 - abs(value - self.optimal))


@dataclass(frozen=True)
class SpectralSignature:
    ndvi: SpectralRange
    evi: SpectralRange
    savi: SpectralRange


@dataclass(frozen=True)
class GrowthStage:
    name: str
    duration_days: int
    ndvi_expected: float
    evi_expected: float
    characteristics: tuple[str, ...]


@dataclass(frozen=True)
class OptimalConditions:
    temperature_c: tuple[float, float]
    rainfall_mm_year: tuple[float, float]
    soil_types: tuple[str, ...]
    altitude_m: tuple[float, float]


@dataclass(frozen=True)
class CropProfile:
    """Static reference description of one crop."""
    key: str
    name: str
    scientific_name: str
    category: str
    growth_cycle_days: int
    signature: SpectralSignature
    growth_stages: tuple[GrowthStage, ...]
    optimal_conditions: OptimalConditions
    common_issues: tuple[str, ...]
    harvest_season: tuple[str, ...]
    main_regions: tuple[str, ...]


@dataclass(frozen=True)
class CropMatch:
    """Score of one profile against observed spectral means."""
    profile: CropProfile
    score: float

    @property
    def name(self) -> str:
        return self.profile.name


@dataclass(frozen=True)
class SpectralCropCandidate:
    """Best spectral match with its runner-up alternatives."""
    crop: str
    confidence: float
    alternatives: tuple[str, ...]


# ============================================================
# Catalog
# ============================================================

_CATALOG = (
    CropProfile(
        key="soja",
        name="Soja",
        scientific_name="Glycine max",
        category="grain",
        growth_cycle_days=120,
        signature=SpectralSignature(
            ndvi=SpectralRange(0.3, 0.85, 0.7),
            evi=SpectralRange(0.25, 0.75, 0.55),
            savi=SpectralRange(0.25, 0.65, 0.5),
        ),
        growth_stages=(
            GrowthStage("Emergência", 10, 0.2, 0.15,
                        ("Solo visível", "Plântulas emergindo", "Cobertura mínima")),
            GrowthStage("Crescimento Vegetativo", 40, 0.5, 0.4,
                        ("Crescimento rápido", "Fechamento de entrelinhas", "Verde intenso")),
            GrowthStage("Floração", 25, 0.75, 0.6,
                        ("Cobertura máxima", "Flores brancas/roxas", "Vigor máximo")),
            GrowthStage("Enchimento de Grãos", 30, 0.7, 0.55,
                        ("Manutenção de vigor", "Formação de vagens", "Verde mantido")),
            GrowthStage("Maturação", 15, 0.35, 0.25,
                        ("Amarelecimento", "Perda de folhas", "Secamento")),
        ),
        optimal_conditions=OptimalConditions(
            temperature_c=(20, 30),
            rainfall_mm_year=(450, 800),
            soil_types=("Latossolo", "Argissolo", "Neossolo"),
            altitude_m=(0, 1000),
        ),
        common_issues=(
            "Ferrugem asiática",
            "Déficit hídrico",
            "Pragas (lagartas, percevejos)",
            "Doenças foliares",
            "Nematoides",
        ),
        harvest_season=("Fevereiro", "Março", "Abril", "Maio"),
        main_regions=("MT", "PR", "RS", "GO", "MS", "BA", "MG"),
    ),
    CropProfile(
        key="milho",
        name="Milho",
        scientific_name="Zea mays",
        category="grain",
        growth_cycle_days=140,
        signature=SpectralSignature(
            ndvi=SpectralRange(0.3, 0.9, 0.75),
            evi=SpectralRange(0.3, 0.8, 0.65),
            savi=SpectralRange(0.3, 0.7, 0.55),
        ),
        growth_stages=(
            GrowthStage("Emergência", 10, 0.25, 0.2,
                        ("Solo exposto predominante", "Plântulas verticais", "Linhas visíveis")),
            GrowthStage("Desenvolvimento Vegetativo", 50, 0.6, 0.5,
                        ("Crescimento vertical rápido", "Verde intenso", "Estrutura em fileiras clara")),
            GrowthStage("Florescimento", 20, 0.8, 0.7,
                        ("Altura máxima", "Pendão visível", "Cobertura quase total")),
            GrowthStage("Enchimento de Grãos", 40, 0.75, 0.65,
                        ("Espigas formadas", "Verde mantido", "Alta biomassa")),
            GrowthStage("Maturação", 20, 0.4, 0.3,
                        ("Amarelecimento", "Secamento", "Espigas pendentes")),
        ),
        optimal_conditions=OptimalConditions(
            temperature_c=(18, 32),
            rainfall_mm_year=(400, 800),
            soil_types=("Latossolo", "Argissolo", "Nitossolo"),
            altitude_m=(0, 2500),
        ),
        common_issues=(
            "Cigarrinha",
            "Lagarta-do-cartucho",
            "Deficiência hídrica",
            "Doenças foliares",
            "Acamamento",
        ),
        harvest_season=("Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho"),
        main_regions=("MT", "PR", "GO", "MS", "MG", "RS"),
    ),
    CropProfile(
        key="cana-de-acucar",
        name="Cana-de-açúcar",
        scientific_name="Saccharum officinarum",
        category="sugarcane",
        growth_cycle_days=365,
        signature=SpectralSignature(
            ndvi=SpectralRange(0.4, 0.85, 0.7),
            evi=SpectralRange(0.35, 0.75, 0.6),
            savi=SpectralRange(0.3, 0.65, 0.52),
        ),
        growth_stages=(
            GrowthStage("Brotação", 30, 0.3, 0.25,
                        ("Sulcos visíveis", "Brotos emergindo", "Solo parcialmente exposto")),
            GrowthStage("Perfilhamento", 60, 0.55, 0.45,
                        ("Múltiplos colmos", "Crescimento lateral", "Verde médio")),
            GrowthStage("Crescimento Intenso", 180, 0.75, 0.65,
                        ("Altura máxima", "Fechamento completo", "Verde intenso")),
            GrowthStage("Maturação", 95, 0.65, 0.55,
                        ("Acúmulo de sacarose", "Leve amarelecimento", "Manutenção de biomassa")),
        ),
        optimal_conditions=OptimalConditions(
            temperature_c=(20, 35),
            rainfall_mm_year=(1200, 1800),
            soil_types=("Latossolo Roxo", "Terra Roxa", "Argissolo"),
            altitude_m=(0, 1000),
        ),
        common_issues=(
            "Broca-da-cana",
            "Cigarrinha",
            "Ferrugem",
            "Déficit hídrico",
            "Compactação do solo",
        ),
        harvest_season=("Abril", "Maio", "Junho", "Julho", "Agosto", "Setembro", "Outubro", "Novembro"),
        main_regions=("SP", "GO", "MG", "PR", "MS", "AL", "PE"),
    ),
    CropProfile(
        key="cafe",
        name="Café",
        scientific_name="Coffea arabica / Coffea canephora",
        category="coffee",
        growth_cycle_days=365,
        signature=SpectralSignature(
            ndvi=SpectralRange(0.5, 0.8, 0.68),
            evi=SpectralRange(0.4, 0.7, 0.58),
            savi=SpectralRange(0.35, 0.6, 0.5),
        ),
        growth_stages=(
            GrowthStage("Repouso Vegetativo", 60, 0.6, 0.5,
                        ("Crescimento reduzido", "Verde constante", "Cultura perene estável")),
            GrowthStage("Floração", 15, 0.65, 0.55,
                        ("Flores brancas visíveis", "Reflexão alterada", "Perfume característico")),
            GrowthStage("Granação", 180, 0.7, 0.6,
                        ("Formação de frutos", "Verde intenso", "Alta atividade fotossintética")),
            GrowthStage("Maturação", 110, 0.65, 0.55,
                        ("Frutos mudando de cor", "Verde a vermelho/amarelo", "Redução de vigor")),
        ),
        optimal_conditions=OptimalConditions(
            temperature_c=(18, 24),
            rainfall_mm_year=(1200, 1800),
            soil_types=("Latossolo Vermelho", "Argissolo", "Solo profundo e bem drenado"),
            altitude_m=(600, 1200),
        ),
        common_issues=(
            "Ferrugem do cafeeiro",
            "Broca-do-café",
            "Bicho-mineiro",
            "Déficit hídrico",
            "Cercosporiose",
        ),
        harvest_season=("Maio", "Junho", "Julho", "Agosto", "Setembro"),
        main_regions=("MG", "ES", "SP", "BA", "PR", "RO"),
    ),
    CropProfile(
        key="algodao",
        name="Algodão",
        scientific_name="Gossypium hirsutum",
        category="fiber",
        growth_cycle_days=180,
        signature=SpectralSignature(
            ndvi=SpectralRange(0.3, 0.8, 0.65),
            evi=SpectralRange(0.25, 0.7, 0.55),
            savi=SpectralRange(0.25, 0.6, 0.48),
        ),
        growth_stages=(
            GrowthStage("Emergência", 15, 0.25, 0.2,
                        ("Solo predominante", "Plântulas pequenas", "Cobertura mínima")),
            GrowthStage("Crescimento Vegetativo", 60, 0.6, 0.5,
                        ("Desenvolvimento de ramos", "Verde intenso", "Fechamento gradual")),
            GrowthStage("Floração", 40, 0.75, 0.65,
                        ("Flores brancas/amarelas", "Cobertura máxima", "Alto vigor")),
            GrowthStage("Frutificação", 45, 0.7, 0.6,
                        ("Formação de capulhos", "Verde mantido", "Estrutura pesada")),
            GrowthStage("Abertura de Capulhos", 20, 0.4, 0.3,
                        ("Algodão branco visível", "Desfolha", "Preparo para colheita")),
        ),
        optimal_conditions=OptimalConditions(
            temperature_c=(20, 30),
            rainfall_mm_year=(500, 1500),
            soil_types=("Latossolo", "Argissolo", "Solo profundo"),
            altitude_m=(0, 1000),
        ),
        common_issues=(
            "Bicudo-do-algodoeiro",
            "Lagarta-rosada",
            "Doenças fúngicas",
            "Déficit hídrico",
            "Ramularia",
        ),
        harvest_season=("Junho", "Julho", "Agosto", "Setembro"),
        main_regions=("MT", "BA", "MS", "GO", "MA"),
    ),
    CropProfile(
        key="pastagem",
        name="Pastagem",
        scientific_name="Brachiaria / Panicum / Cynodon",
        category="pasture",
        growth_cycle_days=365,
        signature=SpectralSignature(
            ndvi=SpectralRange(0.2, 0.75, 0.55),
            evi=SpectralRange(0.15, 0.65, 0.45),
            savi=SpectralRange(0.15, 0.55, 0.4),
        ),
        growth_stages=(
            GrowthStage("Rebrota Inicial", 15, 0.35, 0.28,
                        ("Após pastejo", "Solo parcialmente visível", "Verde claro")),
            GrowthStage("Crescimento Ativo", 30, 0.6, 0.5,
                        ("Vigor alto", "Verde intenso", "Altura ideal para pastejo")),
            GrowthStage("Maturação", 30, 0.5, 0.42,
                        ("Redução de qualidade", "Florescimento", "Coloração mais clara")),
            GrowthStage("Senescência", 60, 0.3, 0.25,
                        ("Amarelecimento", "Material seco", "Baixo valor nutritivo")),
        ),
        optimal_conditions=OptimalConditions(
            temperature_c=(15, 35),
            rainfall_mm_year=(800, 2000),
            soil_types=("Diversos", "Adapta-se bem"),
            altitude_m=(0, 2000),
        ),
        common_issues=(
            "Degradação",
            "Invasoras",
            "Cigarrinha-das-pastagens",
            "Superpastejo",
            "Erosão",
            "Compactação",
        ),
        harvest_season=("Pastejo rotativo o ano todo",),
        main_regions=("Todas as regiões",),
    ),
    CropProfile(
        key="eucalipto",
        name="Eucalipto",
        scientific_name="Eucalyptus spp",
        category="forestry",
        growth_cycle_days=2555,  # 7 years
        signature=SpectralSignature(
            ndvi=SpectralRange(0.5, 0.85, 0.72),
            evi=SpectralRange(0.45, 0.75, 0.65),
            savi=SpectralRange(0.4, 0.68, 0.58),
        ),
        growth_stages=(
            GrowthStage("Estabelecimento", 365, 0.45, 0.38,
                        ("Plantas jovens", "Solo visível entre linhas", "Crescimento inicial")),
            GrowthStage("Crescimento Rápido", 1095, 0.7, 0.62,
                        ("Fechamento de copas", "Verde intenso constante", "Alto incremento")),
            GrowthStage("Maturação", 1095, 0.75, 0.68,
                        ("Estrutura estabilizada", "Cobertura total", "Porte adulto")),
        ),
        optimal_conditions=OptimalConditions(
            temperature_c=(15, 28),
            rainfall_mm_year=(800, 1500),
            soil_types=("Latossolo", "Argissolo", "Solos profundos"),
            altitude_m=(0, 1000),
        ),
        common_issues=(
            "Formigas cortadeiras",
            "Deficiência nutricional",
            "Gonipterus (besouro)",
            "Déficit hídrico em fase jovem",
        ),
        harvest_season=("Ano todo (corte programado)",),
        main_regions=("MG", "SP", "PR", "BA", "MS", "RS"),
    ),
)

CROP_CATALOG = MappingProxyType({profile.key: profile for profile in _CATALOG})


# ============================================================
# Lookup and matching
# ============================================================

def _fold(text: str) -> str:
    """Lower-case, strip accents and unify separators for name comparison."""
    decomposed = unicodedata.normalize("NFKD", text.strip().lower())
    ascii_text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return ascii_text.replace("_", "-").replace(" ", "-")


_PROFILES_BY_FOLDED_NAME = MappingProxyType({
    **{_fold(p.name): p for p in _CATALOG},
    **{_fold(p.key): p for p in _CATALOG},
})


def find_crop_profile(name: Optional[str]) -> Optional[CropProfile]:
    """
    Find a profile by catalog key or display name.

    Comparison ignores case, accents and space/underscore/hyphen differences,
    so "cana de açúcar", "Cana-de-Açúcar" and "cana_de_acucar" all match.
    """
    if not name:
        return None
    return _PROFILES_BY_FOLDED_NAME.get(_fold(name))


def score_crop_profile(profile: CropProfile, ndvi: float, evi: float, savi: float) -> float:
    """
    Score how well observed means fit a crop signature.

    Range hits award 25 (NDVI), 25 (EVI) and 20 (SAVI) points; closeness to
    the optimal NDVI and EVI adds up to 15 points each. Result is in [0, 100].
    """
    signature = profile.signature
    score = 0.0

    if signature.ndvi.contains(ndvi):
        score += 25
    if signature.evi.contains(evi):
        score += 25
    if signature.savi.contains(savi):
        score += 20

    score += signature.ndvi.closeness(ndvi) * 15
    score += signature.evi.closeness(evi) * 15

    return max(0.0, min(100.0, score))


def match_crops_by_spectral(ndvi: float, evi: float, savi: float) -> list[CropMatch]:
    """Score every catalog profile, best match first (ties keep catalog order)."""
    matches = [
        CropMatch(profile=profile, score=score_crop_profile(profile, ndvi, evi, savi))
        for profile in _CATALOG
    ]
    matches.sort(key=lambda m: m.score, reverse=True)
    return matches


def identify_crop_by_spectral(ndvi: float, evi: float, savi: float) -> SpectralCropCandidate:
    """Return the top spectral match and the next three alternatives."""
    matches = match_crops_by_spectral(ndvi, evi, savi)
    top = matches[0]

    logger.debug(f"Spectral crop match: {top.name} score={top.score:.1f} "
                 f"(ndvi={ndvi:.3f}, evi={evi:.3f}, savi={savi:.3f})")

    return SpectralCropCandidate(
        crop=top.name,
        confidence=top.score / 100,
        alternatives=tuple(m.name for m in matches[1:4]),
    )


def estimate_growth_stage(profile: CropProfile, ndvi: float) -> GrowthStage:
    """Growth stage whose expected NDVI is closest to the observed mean."""
    return min(profile.growth_stages, key=lambda stage: abs(stage.ndvi_expected - ndvi))


def get_crop_recommendations(crop_name: str, health_fraction: float) -> list[str]:
    """
    Crop-specific advice for a health level expressed as a 0-1 fraction.

    Returns an empty list for crops outside the catalog.
    """
    profile = find_crop_profile(crop_name)
    if profile is None:
        return []

    recommendations = []
    if health_fraction < 0.5:
        recommendations.append(f"Atenção: saúde da cultura {profile.name} está abaixo do ideal")
        recommendations.append(f"Verificar ocorrência de: {', '.join(profile.common_issues[:3])}")
    elif health_fraction < 0.7:
        recommendations.append(f"{profile.name} em condições moderadas")
        recommendations.append(f"Monitorar: {profile.common_issues[0]}")
    else:
        recommendations.append(f"{profile.name} em excelente condição")
        recommendations.append("Manter práticas atuais de manejo")

    recommendations.append(f"Colheita prevista para: {', '.join(profile.harvest_season)}")
    return recommendations
