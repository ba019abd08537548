"""
Therapeutic-area and modality keyword groups
bd_scoring/scoring/pillars/keywords.py

Lower-case substrings matched against therapeutic areas, indications and
mechanisms. Shared across pillars so each rule reads the same vocabulary.
"""

# Areas with expensive, long or failure-prone development
COMPLEX_AREAS = frozenset([
    "oncology", "neurology", "rare disease", "gene therapy",
])

GENE_THERAPY = frozenset(["gene therapy", "gene editing", "crispr", "aav"])
CELL_THERAPY = frozenset(["cell therapy", "car-t", "car t", "stem cell"])
ADVANCED_MODALITY = frozenset(["gene", "cell therapy", "car-t", "viral vector", "crispr"])
BIOLOGIC = frozenset(["antibody", "protein", "biologic", "peptide", "enzyme", "adc"])
SMALL_MOLECULE = frozenset(["small molecule", "oral", "inhibitor", "tablet"])
PLATFORM = frozenset(["platform", "mrna", "crispr", "gene editing", "antibody-drug conjugate", "adc"])
CUTTING_EDGE = frozenset(["gene", "cell therapy", "mrna", "crispr", "digital", "rna"])
NOVEL_MECHANISM = frozenset(["gene", "cell", "rna", "crispr", "novel", "first-in-class"])
ESTABLISHED_MECHANISM = frozenset(["antibody", "small molecule", "vaccine", "protein", "inhibitor"])

NEUROLOGY = frozenset(["neuro", "alzheimer", "parkinson", "als"])
PSYCHIATRY = frozenset(["psych", "depression", "schizophrenia", "bipolar"])
CARDIOVASCULAR = frozenset(["cardio", "heart", "vascular"])
ONCOLOGY = frozenset(["oncology", "cancer", "tumor", "leukemia", "lymphoma"])
RARE = frozenset(["rare", "orphan"])
INFECTIOUS = frozenset(["infectious", "viral", "bacterial", "antimicrobial", "vaccine"])
DERMATOLOGY = frozenset(["derma", "skin"])
METABOLIC = frozenset(["metabolic", "diabetes", "obesity"])
IMMUNOLOGY = frozenset(["immunology", "autoimmune", "inflammation", "inflammatory"])

# Areas a typical strategic acquirer covers
STRATEGIC_AREAS = ONCOLOGY | NEUROLOGY | IMMUNOLOGY | RARE | CARDIOVASCULAR | METABOLIC | INFECTIOUS
HIGH_VALUE_AREAS = ONCOLOGY | RARE | IMMUNOLOGY | frozenset(["gene therapy", "cell therapy"])
ESTABLISHED_AREAS = ONCOLOGY | INFECTIOUS | CARDIOVASCULAR | DERMATOLOGY | METABOLIC

HIGH_IMPACT_DRIVERS = frozenset(["unmet", "aging", "breakthrough", "innovation"])
HARD_ENDPOINTS = CARDIOVASCULAR | frozenset(["alzheimer", "neurodegenerat", "survival"])
VULNERABLE_POPULATIONS = frozenset(["pediatric", "paediatric", "elderly", "pregnan", "neonat"])
IP_SIGNALS = frozenset(["patent", "proprietary", "first-in-class", "exclusive", "novel", "best-in-class"])
VAGUE_AREAS = frozenset(["other", "various", "general", "misc"])

MAJOR_REGIONS = {
    "us": "US", "usa": "US", "united states": "US", "fda": "US",
    "eu": "EU", "europe": "EU", "ema": "EU",
    "japan": "Japan", "jp": "Japan", "pmda": "Japan",
    "china": "China", "cn": "China", "nmpa": "China",
}
