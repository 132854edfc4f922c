"""
ReplayGuard Recorded Plan

XML test plan produced by the recording proxy and executed by the plan runner.

    <testPlan testname="Recorded Plan">
      <threadGroup testname="Thread Group" threads="1" loops="1">
        <httpSampler testname="1 /users/123" method="GET" url="http://127.0.0.1:8089/users/123">
          <header name="Accept">application/json</header>
          <body></body>
          <stringProp name="cacheKey">3fa85f64-5717-4562-b3fc-2c963f66afa6</stringProp>
        </httpSampler>
      </threadGroup>
    </testPlan>
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from ..common.errors import StructuralError


@dataclass
class PlanSampler:
    """One HTTP request of a recorded plan."""

    name: str
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    cache_key: str = ""

    def to_element(self) -> ET.Element:
        element = ET.Element('httpSampler', {'testname': self.name, 'method': self.method, 'url': self.url})
        for name, value in self.headers.items():
            header = ET.SubElement(element, 'header', {'name': name})
            header.text = value
        ET.SubElement(element, 'body').text = self.body
        ET.SubElement(element, 'stringProp', {'name': 'cacheKey'}).text = self.cache_key
        return element

    @classmethod
    def from_element(cls, element: ET.Element) -> 'PlanSampler':
        headers = {h.get('name', ''): h.text or '' for h in element.findall('header')}
        cache_key = ''
        for prop in element.findall('stringProp'):
            if prop.get('name') == 'cacheKey':
                cache_key = prop.text or ''
        return cls(
            name=element.get('testname', ''),
            method=element.get('method', 'GET'),
            url=element.get('url', ''),
            headers=headers,
            body=element.findtext('body') or '',
            cache_key=cache_key
        )


@dataclass
class RecordedPlan:
    """Test plan with a single thread group of HTTP samplers."""

    name: str = "Recorded Plan"
    thread_group: str = "Thread Group"
    samplers: List[PlanSampler] = field(default_factory=list)

    def to_xml(self) -> ET.ElementTree:
        root = ET.Element('testPlan', {'testname': self.name})
        group = ET.SubElement(root, 'threadGroup', {'testname': self.thread_group, 'threads': '1', 'loops': '1'})
        for sampler in self.samplers:
            group.append(sampler.to_element())
        tree = ET.ElementTree(root)
        ET.indent(tree)
        return tree

    def save(self, path: Union[str, Path]):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_xml().write(path, encoding='utf-8', xml_declaration=True)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'RecordedPlan':
        """
        Load plan from XML file.

        Raises:
            StructuralError: If the file is missing or not a plan
        """
        try:
            root = ET.parse(path).getroot()
        except (OSError, ET.ParseError) as e:
            raise StructuralError(f"Cannot read plan {path}: {e}") from e

        if root.tag != 'testPlan':
            raise StructuralError(f"{path} is not a test plan (root element <{root.tag}>)")

        group = root.find('threadGroup')
        samplers = [PlanSampler.from_element(e) for e in group.findall('httpSampler')] if group is not None else []
        return cls(
            name=root.get('testname', 'Recorded Plan'),
            thread_group=group.get('testname', 'Thread Group') if group is not None else 'Thread Group',
            samplers=samplers
        )
