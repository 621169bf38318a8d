"""
Reusable Control Group Miner
Finds contiguous control sequences repeated across a corpus of forms and
ranks them as candidate reusable components
"""

import re
import logging
from collections import Counter
from typing import Dict, List, Mapping

from formlift.analysis.models import (
    AnalysisResult,
    ControlGroup,
    ControlSignature,
    RepeatingSectionInfo,
    SignatureKey,
)
from formlift.analysis.similarity import (
    DEFAULT_GROUP_SIMILARITY_THRESHOLD,
    DEFAULT_LABEL_SIMILARITY_THRESHOLD,
    group_similarity,
)
from formlift.core.models import ControlDefinition, FormDefinition, ValidationError

logger = logging.getLogger(__name__)


class ReusableControlGroupMiner:
    """
    Sliding-window miner for repeated control sequences

    Only the thresholds live on the instance; each call works on fresh state.
    """

    STRUCTURAL_TYPES = {"Section", "RepeatingSection", "RepeatingTable", "Label"}
    REPEATING_TABLE_TYPE = "RepeatingTable"
    REPEATING_SECTION_TYPE = "repeating"

    # Checked in order; first keyword set that matches names the group
    NAME_PATTERNS = (
        (("first", "last", "name"), "NameFields"),
        (("address", "city", "state", "zip"), "AddressFields"),
        (("email", "phone"), "ContactFields"),
        (("department", "division", "unit"), "OrganizationFields"),
        (("date", "time"), "DateTimeFields"),
    )

    NON_ALPHANUMERIC = re.compile(r'[^a-zA-Z0-9]')

    def __init__(self,
                 group_similarity_threshold: float = DEFAULT_GROUP_SIMILARITY_THRESHOLD,
                 label_similarity_threshold: float = DEFAULT_LABEL_SIMILARITY_THRESHOLD):
        """
        Args:
            group_similarity_threshold: Minimum score for two groups to merge
            label_similarity_threshold: Minimum score for two labels to count as similar
        """
        self.group_similarity_threshold = group_similarity_threshold
        self.label_similarity_threshold = label_similarity_threshold

    def analyze_for_reusable_groups(self,
                                    form_definitions: Mapping[str, FormDefinition],
                                    min_occurrences: int = 2,
                                    min_group_size: int = 2,
                                    max_group_size: int = 10) -> AnalysisResult:
        """
        Mine a form corpus for reusable control groups

        Args:
            form_definitions: Forms keyed by identifier
            min_occurrences: Minimum number of distinct forms a group must appear in
            min_group_size: Smallest window size
            max_group_size: Largest window size

        Returns:
            AnalysisResult

        Raises:
            ValidationError: If the size or occurrence parameters are invalid
        """
        self._validate_parameters(min_occurrences, min_group_size, max_group_size)

        result = AnalysisResult(total_forms_analyzed=len(form_definitions))
        result.repeating_sections = self.extract_repeating_sections(form_definitions)

        sequences: Dict[str, List[ControlSignature]] = {}
        for form_id, form in form_definitions.items():
            sequence = self.extract_control_sequence(form)
            sequences[form_id] = sequence
            result.total_controls_analyzed += len(sequence)
            result.controls_in_repeating_sections += sum(
                1 for control in form.iter_controls() if self._is_repeating(control))

        candidates = self.find_common_groups(sequences, min_group_size, max_group_size, min_occurrences)
        merged = self.merge_similar_groups(candidates)
        result.identified_groups = self.rank_and_name_groups(merged)
        result.control_frequency = self.calculate_control_frequency(sequences)
        result.common_patterns = self.identify_common_patterns(result.identified_groups)

        logger.debug(f"Mined {len(form_definitions)} forms: {len(candidates)} candidate groups, "
                     f"{len(result.identified_groups)} after merge")
        return result

    def extract_repeating_sections(self,
                                   form_definitions: Mapping[str, FormDefinition]) -> List[RepeatingSectionInfo]:
        """Inventory of repeating tables and named repeating sections, per form"""
        sections: List[RepeatingSectionInfo] = []

        for form_id, form in form_definitions.items():
            named: Dict[str, RepeatingSectionInfo] = {}

            for control in form.iter_controls():
                if control.type == self.REPEATING_TABLE_TYPE:
                    child_types = []
                    for child in control.controls:
                        if child.type not in child_types:
                            child_types.append(child.type)
                    sections.append(RepeatingSectionInfo(
                        name=control.display_label,
                        form_name=form_id,
                        control_count=len(control.controls),
                        control_types=child_types,
                    ))

                if control.is_in_repeating_section and control.repeating_section_name:
                    info = named.setdefault(control.repeating_section_name, RepeatingSectionInfo(
                        name=control.repeating_section_name,
                        form_name=form_id,
                    ))
                    info.control_count += 1
                    if control.type not in info.control_types:
                        info.control_types.append(control.type)

            sections.extend(named.values())

        return sections

    def extract_control_sequence(self, form: FormDefinition) -> List[ControlSignature]:
        """
        Ordered input controls of a form, positions continuous across views

        Structural controls, labels and anything inside a repeating section
        are left out.
        """
        sequence: List[ControlSignature] = []

        for control in form.iter_controls():
            if control.is_merged_into_parent:
                continue
            if control.type in self.STRUCTURAL_TYPES:
                continue
            if self._is_repeating(control):
                logger.debug(f"Skipping control {control.display_label!r}: inside repeating section "
                             f"{control.repeating_section_name!r}")
                continue

            label = control.display_label
            sequence.append(ControlSignature(
                label=label,
                type=control.type,
                name=control.name,
                relative_position=len(sequence),
                normalized_label=self.normalize_label(label),
            ))

        return sequence

    def find_common_groups(self,
                           sequences: Mapping[str, List[ControlSignature]],
                           min_size: int,
                           max_size: int,
                           min_occurrences: int) -> List[ControlGroup]:
        """
        Sliding-window candidates present in at least min_occurrences forms

        Returns:
            Groups in first-seen order
        """
        groups: Dict[str, ControlGroup] = {}

        for form_id, sequence in sequences.items():
            for size in range(min_size, max_size + 1):
                for start in range(len(sequence) - size + 1):
                    window = sequence[start:start + size]
                    key = self.generate_group_key(window)

                    group = groups.get(key)
                    if group is None:
                        group = groups[key] = ControlGroup(group_id=key, controls=list(window))
                    group.add_form(form_id)

        return [group for group in groups.values() if group.occurrence_count >= min_occurrences]

    def merge_similar_groups(self, groups: List[ControlGroup]) -> List[ControlGroup]:
        """
        Fold near-duplicate groups into the most frequent one

        Anchors are visited by descending occurrence count; an anchor absorbs
        every unprocessed group of the same size that scores at or above the
        group similarity threshold.
        """
        merged: List[ControlGroup] = []
        processed = set()
        ordered = sorted(groups, key=lambda g: g.occurrence_count, reverse=True)

        for anchor in ordered:
            if anchor.group_id in processed:
                continue

            similar = [
                other for other in ordered
                if other.group_id not in processed
                and other.group_id != anchor.group_id
                and other.size == anchor.size
                and group_similarity(anchor.controls, other.controls,
                                     self.label_similarity_threshold) >= self.group_similarity_threshold
            ]

            for other in similar:
                anchor.absorb(other)
                processed.add(other.group_id)
                logger.debug(f"Merged group {other.group_id!r} into {anchor.group_id!r}")

            merged.append(anchor)
            processed.add(anchor.group_id)

        return merged

    def rank_and_name_groups(self, groups: List[ControlGroup]) -> List[ControlGroup]:
        """Name every group, then order by occurrences and size, both descending"""
        for group in groups:
            group.suggested_name = self.generate_suggested_name(group)

        return sorted(groups, key=lambda g: (g.occurrence_count, g.size), reverse=True)

    def generate_suggested_name(self, group: ControlGroup) -> str:
        """
        Suggest a component name from the group's labels

        Args:
            group: Control group

        Returns:
            A canned name for well-known field sets, otherwise one built from
            the first and last labels
        """
        labels = [c.label for c in group.controls if c.label and c.label.strip()]

        if not labels:
            return f"ControlGroup_{group.group_id[:8]}"

        label_text = " ".join(labels).lower()
        for keywords, name in self.NAME_PATTERNS:
            if sum(1 for keyword in keywords if keyword in label_text) >= len(keywords) // 2:
                return name

        first = labels[0].replace(" ", "")
        last = labels[-1].replace(" ", "") if len(labels) > 1 else ""
        return f"{first}To{last}" if last else f"{first}Group"

    def calculate_control_frequency(self,
                                    sequences: Mapping[str, List[ControlSignature]]) -> Dict[SignatureKey, int]:
        """Number of forms each control signature appears in, most frequent first"""
        frequency: Counter = Counter()
        for sequence in sequences.values():
            frequency.update({control.key for control in sequence})

        return dict(sorted(frequency.items(), key=lambda item: item[1], reverse=True))

    def identify_common_patterns(self, groups: List[ControlGroup]) -> List[str]:
        """Human-readable counts of recurring group shapes"""
        patterns = []

        text_field_groups = [
            g for g in groups
            if g.size >= 2 and all(c.type == "TextField" for c in g.controls)
        ]
        if text_field_groups:
            patterns.append(f"Found {len(text_field_groups)} groups of sequential text fields")

        label_input_pairs = [
            g for g in groups
            if g.size == 2 and g.controls[0].type == "Label" and g.controls[1].type != "Label"
        ]
        if label_input_pairs:
            patterns.append(f"Found {len(label_input_pairs)} label-input pairs")

        date_groups = [
            g for g in groups
            if g.size >= 2 and any(c.type == "DatePicker" for c in g.controls)
        ]
        if date_groups:
            patterns.append(f"Found {len(date_groups)} date/time field combinations")

        return patterns

    def normalize_label(self, label: str) -> str:
        """Strip non-alphanumerics and upper-case; blank labels normalize to ''"""
        if not label or not label.strip():
            return ""
        return self.NON_ALPHANUMERIC.sub("", label).upper()

    @staticmethod
    def generate_group_key(controls: List[ControlSignature]) -> str:
        return "|".join(control.group_token for control in controls)

    def _is_repeating(self, control: ControlDefinition) -> bool:
        return control.is_in_repeating_section or control.section_type == self.REPEATING_SECTION_TYPE

    @staticmethod
    def _validate_parameters(min_occurrences: int, min_group_size: int, max_group_size: int) -> None:
        if min_occurrences < 1:
            raise ValidationError(f"min_occurrences must be at least 1, got {min_occurrences}")
        if min_group_size < 1:
            raise ValidationError(f"min_group_size must be at least 1, got {min_group_size}")
        if max_group_size < min_group_size:
            raise ValidationError(
                f"max_group_size ({max_group_size}) must not be smaller than min_group_size ({min_group_size})")
