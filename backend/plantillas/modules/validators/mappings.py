"""
Mapeo EXACTO de nombres de campo a validadores.

No hay heurística de respaldo: un campo que no está en la tabla no se enriquece.
Las llaves se comparan normalizadas (sin acentos, mayúsculas, espacios colapsados).
"""
from typing import Dict, Optional

from plantillas.utils.text import normalize_token


FIELD_VALIDATOR_MAPPINGS: Dict[str, str] = {
    # DOCUMENTOS
    "ID_TIPO_DOCUMENTO": "TIPO_DOCUMENTO",
    "TIPO_DOCUMENTO": "TIPO_DOCUMENTO",
    "TIPO_DE_DOCUMENTO_DE_INSTITUCION_ASOCIADA": "TIPO_DOCUMENTO",
    "ID_TIPO_DOCUMENTO_SUPERVISOR": "TIPO_DOCUMENTO",
    "ID_EMPRESA": "TIPO_DOCUMENTO",

    # SEXO BIOLOGICO
    "ID_SEXO_BIOLOGICO": "SEXO_BIOLOGICO",
    "SEXO_BIOLOGICO": "SEXO_BIOLOGICO",

    # ESTADO CIVIL
    "ID_ESTADO_CIVIL": "ESTADO_CIVIL",
    "ESTADO_CIVIL": "ESTADO_CIVIL",

    # PAISES
    "ID_PAIS_PROCEDENCIA": "PAIS",
    "ID_PAIS_FINANCIADOR": "PAIS",
    "ID_PAIS_INSTITUCIONAL_ASOCIADO": "PAIS",
    "ID PAIS INSTITUCION ASOCIADA": "PAIS",
    "ID_PAIS_INSTITUCION_ASOCIADA": "PAIS",
    "ID_PAIS_NACIMIENTO": "PAIS",
    "ID_PAIS_DESTINO": "PAIS",
    "PAIS_INSTITUCIONAL_ASOCIADO": "PAIS",

    # CONVENIOS
    "TIPOLOGIA_CONVENIO": "TIPO_CONVENIO",
    "TIPOLOGIA DE CONVENIO": "TIPO_CONVENIO",
    "ID_TIPOLOGIA_CONVENIO": "TIPO_CONVENIO",
    "TIPO_CONVENIO": "TIPO_CONVENIO",
    "ID_TIPO_CONVENIO": "TIPO_CONVENIO",
    "ORIGEN_CONVENIO": "ORIGEN_CONVENIO",
    "ORIGEN_DE_CONVENIO": "ORIGEN_CONVENIO",
    "ORIGEN DE CONVENIO": "ORIGEN_CONVENIO",
    "OR_GEN_CONVENIO": "ORIGEN_CONVENIO",
    "TIPOLOG_A_CONVENIO": "TIPOLOGIA_CONVENIOS",
    "TIPOLOGIA CONVENIO": "TIPOLOGIA_CONVENIOS",

    # ACTIVIDADES
    "ID_TIPO_ACTIVIDAD": "ACTIVIDADES_DE_BIENESTAR",
    "TIPO_ACTIVIDAD": "ACTIVIDADES_DE_BIENESTAR",
    "CODIGO_ACTIVIDAD": "ACTIVIDADES_DE_BIENESTAR",

    # ACADEMICO/NO ACADEMICO (las variantes con tilde colapsan al normalizar)
    "ACADEMICO_NO_ACADEMICO": "TIPO_ACADEMICO_NO_ACADEMICO",
    "ACADEMICO NO ACADEMICO": "TIPO_ACADEMICO_NO_ACADEMICO",
    "ID_ACADEMICO_NO_ACADEMICO": "TIPO_ACADEMICO_NO_ACADEMICO",
    "ID ACADEMICO NO ACADEMICO": "TIPO_ACADEMICO_NO_ACADEMICO",

    # BENEFICIARIOS
    "ID_TIPO_BENEFICIARIO": "TIPO_BENEFICIARIO",
    "TIPO_BENEFICIARIO": "TIPO_BENEFICIARIO",
    "CANTIDAD_BENEFICIARIOS_EXTERNOS": "ACTIVIDADES_BENEFICIARIO_BIENESTAR",
    "BENEFICIARIOS": "TIPO_BENEFICIARIO",
    "TIPO_DE_BENEFICIARIO": "TIPO_BENEFICIARIO",
    "CATEGORIA_BENEFICIARIO": "TIPO_BENEFICIARIO",
    "PERFIL_BENEFICIARIO": "TIPO_BENEFICIARIO",

    # MOVILIDAD
    "TIPO_MOVILIDAD": "TIPO_MOVILIDAD_ENTRANTE_ESTUDIANTES",
    "ID_TIPO_MOVILIDAD": "TIPO_MOVILIDAD_ENTRANTE_ESTUDIANTES",
    "MODALIDAD": "TIPO_MOVILIDAD_SALIENTE_FUNCIONARIOS",
    "ID_MODALIDAD": "TIPO_MOVILIDAD_SALIENTE_FUNCIONARIOS",

    # ALCANCE
    "ALCANCE": "TIPO_ALCANCE",
    "ID_ALCANCE": "TIPO_ALCANCE",
    "TIPO_ALCANCE": "TIPO_ALCANCE",

    # EXTENSION
    "ID_TIPO_BENEF_EXTENSION": "TIPO_BENEFICIARIO",
    "TIPO_BENEF_EXTENSION": "TIPO_DE_EXTENSION",
    "TIPO_DE_EXTENSION": "TIPO_DE_EXTENSION",

    # APOYO
    "TIPO_DE_APOYO_FINANCIERO_ACAD_MICO_OTROS_APOYOS": "TIPO_DE_APOYO",
    "TIPO DE APOYO (FINANCIERO, ACADÉMICO, OTROS APOYOS)": "TIPO_DE_APOYO",
    "TIPO_DE_APOYO": "TIPO_DE_APOYO",
    "ID_TIPO_DE_APOYO": "TIPO_DE_APOYO",

    # RECURSOS
    "TIPO_RECURSO": "TIPO_RECURSOS",
    "ID_TIPO_RECURSO": "TIPO_RECURSOS",
    "TIPO_RECURSOS": "TIPO_RECURSOS",

    # CONSULTORIA
    "ID_SECTOR_CONSULTORIA": "SECTOR_CONSULTORIA",
    "ID SECTOR CONSULTORIA": "SECTOR_CONSULTORIA",
    "SECTOR_CONSULTORIA": "SECTOR_CONSULTORIA",
    "CODIGO_CONSULTORIA": "SECTOR_CONSULTORIA",
    "TIPO_CONSULTORIA": "SECTOR_CONSULTORIA",

    # NIVEL ESTUDIO
    "ID_MAXIMO_NIVEL_ESTUDIO": "TIPO_ACADEMICO_NO_ACADEMICO",
    "MAXIMO_NIVEL_ESTUDIO": "TIPO_ACADEMICO_NO_ACADEMICO",
    "NIVEL_ESTUDIO": "TIPO_ACADEMICO_NO_ACADEMICO",
    "TIPO_ACADEMICO_NO_ACADEMICO": "TIPO_ACADEMICO_NO_ACADEMICO",

    # ESTRATEGIAS
    "TIPOLOGIA_ESTRATEGIAS": "TIPOLOGIA_ESTRATEGIAS",
    "ID_TIPOLOGIA_ESTRATEGIAS": "TIPOLOGIA_ESTRATEGIAS",
    "TIPO_ESTRATEGIAS": "TIPOLOGIA_ESTRATEGIAS",

    # FUENTES (el nombre del validador nacional tiene un espacio en origen)
    "ID_FUENTE_NACIONAL_INVESTIGACION": "TIPO_FUENTE _NACIONAL_INVESTIGACION",
    "ID_FUENTE_INTERNACIONAL": "ID_FUENTE_INTERNACIONAL",
    "FUENTE_NACIONAL": "TIPO_FUENTE _NACIONAL_INVESTIGACION",
    "FUENTE_INTERNACIONAL": "ID_FUENTE_INTERNACIONAL",
    "ID_FUENTE_NACIONAL_INVESTIG": "ID_FUENTE_NACIONAL_INVESTIGACION",

    # IMPACTO
    "ID_IMPACTO": "TIPO_IMPACTO",
    "TIPO_IMPACTO": "TIPO_IMPACTO",
    "IMPACTO": "TIPO_IMPACTO",

    # CAMPOS S/N Y OTROS ESPECIFICOS
    "ACTIVO_NO_ACTIVO": "SI_NO",
    "PRORROGABLE": "SI_NO",
    "ACTIVIDAD_FORMACION": "SI_NO",
    "ACTIVIDAD_INVESTIGACION": "SI_NO",
    "ACTIVIDAD_EXTENSION": "SI_NO",
    "ACTIVIDAD_ADMINISTRATIVA": "SI_NO",
    "OTRAS_ACTIVIDADES_COOPERACION": "SI_NO",
    "ES_UNA_ACTIVIDAD_DE_COOPERACI_N_NACIONAL": "SI_NO",
    "ES_UNA_ACTIVIDAD_DE_COOPERACI_N_INTERNACIONAL": "SI_NO",
    "PROMUEVE_LA_COMPRENSI_N_DE_LA_REALIDAD_SOCIAL": "SI_NO",
    "PROMUEVE_LA_EMPAT_A": "SI_NO",
    "PROMUEVE_LA_TICA": "SI_NO",
    "PROMUEVE_LAS_HABILIDADES_BLANDAS": "SI_NO",
    "PROMUEVE_EL_RELACIONAMIENTO_CON_OTRAS_CULTURAS_Y_LENGUAS": "SI_NO",
    "DESARROLLA_CAPACIDADES_PARA_EL_DEL_TRABAJO_AUT_NOMO": "SI_NO",
    "CONTRIBUYE_A_LA_PERMANENCIA": "SI_NO",
    "CONTRIBUYE_A_LA_GRADUACI_N": "SI_NO",
    "PROMUEVE_EL_DESARROLLO_PROFESORAL": "SI_NO",
    "PROMUEVE_LA_FORMACI_N_INTEGRAL": "SI_NO",

    # DERECHO PECUNIARIO
    "ID_TIPO_DERECHO_PECUNIARIO": "TIPO_DERECHOS_PECUNIARIOS",

    # ESTIMULOS
    "TIPOD_DE_EST_MULO": "TIPO_ESTIMULO",
    "NOMBRE_DEL_EST_MULO": "NOMBRE_ESTIMULO",
    "ID_TIPO_ESTIMULO": "TIPO_ESTIMULO",
    "TIPO_ESTIMULO": "TIPO_ESTIMULO",
    "NOMBRE_ESTIMULO": "NOMBRE_ESTIMULO",

    # DEDICACION
    "ID_DEDICACION": "DEDICACION",
}

_NORMALIZED_MAPPINGS: Dict[str, str] = {
    normalize_token(field_name): validator_name
    for field_name, validator_name in FIELD_VALIDATOR_MAPPINGS.items()
}


def lookup_validator_name(field_name: str) -> Optional[str]:
    """Nombre del validador asociado al campo, o None si no hay mapeo."""
    if not field_name:
        return None
    return _NORMALIZED_MAPPINGS.get(normalize_token(field_name))
