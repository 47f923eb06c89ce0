"""Builders for single RRF lines, with a trailing pipe as in the UMLS distribution."""


def _line(fields):
    return "|".join(fields) + "|\n"


def conso_line(aui, sab, tty, code, name, lat="ENG", suppress="N", cui="C0000001"):
    return _line([
        cui, lat, "P", "L" + aui[1:], "PF", "S" + aui[1:], "Y", aui,
        "", "", "", sab, tty, code, name, "0", suppress, "",
    ])


def sat_line(code, atn, sab, atv, suppress="N", cui="C0000001"):
    return _line([cui, "", "", "A0000001", "AUI", code, "AT0000001", "", atn, sab, atv, suppress, ""])


def rel_line(aui1, rel, aui2, sab, rela="", suppress="N"):
    return _line([
        "C0000001", aui1, "AUI", rel, "C0000002", aui2, "AUI", rela,
        "R0000001", "", sab, sab, "", "", suppress, "",
    ])


def doc_line(dockey, value, doc_type, expl):
    return _line([dockey, value, doc_type, expl])


BASE_URL = "http://terminology.test/"
IMPORT_URL = BASE_URL + "fhir/R4/CodeSystem/$import"
CODE_SYSTEM_URL = BASE_URL + "fhir/R4/CodeSystem"

SNOMED = "http://snomed.info/sct"
LOINC = "http://loinc.org"


def import_requests(history):
    """Only the $import calls from a requests_mock history, in order."""
    return [r for r in history if r.path.lower().endswith(("$import", "%24import"))]


def codings_of(request):
    body = request.json()
    return [(p["valueCoding"]["code"], p["valueCoding"]["display"]) for p in body["parameter"][1:]]


def properties_of(request):
    body = request.json()
    return [
        tuple(part.get("valueCode", part.get("valueString")) for part in p["part"])
        for p in body["parameter"][1:]
    ]
