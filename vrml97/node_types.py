"""
Node interfaces: the field and event sets a node type accepts.

Built-in VRML97 node types are described by a fixed table. PROTO,
EXTERNPROTO and Script declarations build the same NodeInterface structure
while parsing.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


FIELD = 'field'
EXPOSED_FIELD = 'exposedField'
EVENT_IN = 'eventIn'
EVENT_OUT = 'eventOut'


@dataclass
class InterfaceField:
    """field / exposedField declaration; default is None for EXTERNPROTO."""
    name: str
    type_name: str
    kind: str = FIELD
    default: Optional['Field'] = None
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)


@dataclass
class EventDecl:
    """eventIn / eventOut declaration."""
    name: str
    type_name: str
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)


@dataclass
class NodeInterface:
    fields: Dict[str, InterfaceField] = field(default_factory=dict)
    event_ins: Dict[str, EventDecl] = field(default_factory=dict)
    event_outs: Dict[str, EventDecl] = field(default_factory=dict)

    def declares(self, name: str) -> bool:
        """True if any declaration of this interface already uses name."""
        return name in self.fields or name in self.event_ins or name in self.event_outs

    def field_type(self, name: str) -> Optional[str]:
        decl = self.fields.get(name)
        return decl.type_name if decl else None

    def event_in_type(self, name: str) -> Optional[str]:
        """Type of the eventIn called name, including those implied by exposedFields."""
        if name in self.event_ins:
            return self.event_ins[name].type_name
        for candidate in (name, name[4:] if name.startswith('set_') else None):
            decl = self.fields.get(candidate) if candidate else None
            if decl and decl.kind == EXPOSED_FIELD:
                return decl.type_name
        return None

    def event_out_type(self, name: str) -> Optional[str]:
        """Type of the eventOut called name, including those implied by exposedFields."""
        if name in self.event_outs:
            return self.event_outs[name].type_name
        for candidate in (name, name[:-8] if name.endswith('_changed') else None):
            decl = self.fields.get(candidate) if candidate else None
            if decl and decl.kind == EXPOSED_FIELD:
                return decl.type_name
        return None


@dataclass
class ProtoDeclaration:
    """PROTO or EXTERNPROTO: a named node type with its own interface."""
    name: str
    interface: NodeInterface
    body: List['Node'] = field(default_factory=list)
    routes: List['Route'] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)
    is_extern: bool = False
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)


# =============================================================================
# Built-in node types
# =============================================================================

def _decls(decl_text: str) -> List[tuple]:
    """Expand "SFVec3f a b; MFNode c" into [(a, SFVec3f), (b, SFVec3f), (c, MFNode)]."""
    result = []
    for group in decl_text.split(';'):
        words = group.split()
        if words:
            result.extend((name, words[0]) for name in words[1:])
    return result


def _builtin(exposed: str = '', fields: str = '', ins: str = '', outs: str = '') -> NodeInterface:
    interface = NodeInterface()
    for name, type_name in _decls(exposed):
        interface.fields[name] = InterfaceField(name, type_name, EXPOSED_FIELD)
    for name, type_name in _decls(fields):
        interface.fields[name] = InterfaceField(name, type_name, FIELD)
    for name, type_name in _decls(ins):
        interface.event_ins[name] = EventDecl(name, type_name)
    for name, type_name in _decls(outs):
        interface.event_outs[name] = EventDecl(name, type_name)
    return interface


_BBOX = 'SFVec3f bboxCenter bboxSize'
_GROUPING_INS = 'MFNode addChildren removeChildren'
_INTERPOLATOR_INS = 'SFFloat set_fraction'
_BINDABLE_INS = 'SFBool set_bind'

BUILTIN_NODE_TYPES: Dict[str, NodeInterface] = {
    'Anchor': _builtin(
        exposed='MFNode children; SFString description; MFString parameter url',
        fields=_BBOX, ins=_GROUPING_INS),
    'Appearance': _builtin(exposed='SFNode material texture textureTransform'),
    'AudioClip': _builtin(
        exposed='SFString description; SFBool loop; SFFloat pitch; '
                'SFTime startTime stopTime; MFString url',
        outs='SFTime duration_changed; SFBool isActive'),
    'Background': _builtin(
        exposed='MFFloat groundAngle skyAngle; MFColor groundColor skyColor; '
                'MFString backUrl bottomUrl frontUrl leftUrl rightUrl topUrl',
        ins=_BINDABLE_INS, outs='SFBool isBound'),
    'Billboard': _builtin(
        exposed='SFVec3f axisOfRotation; MFNode children',
        fields=_BBOX, ins=_GROUPING_INS),
    'Box': _builtin(fields='SFVec3f size'),
    'Collision': _builtin(
        exposed='MFNode children; SFBool collide',
        fields=_BBOX + '; SFNode proxy', ins=_GROUPING_INS,
        outs='SFTime collideTime'),
    'Color': _builtin(exposed='MFColor color'),
    'ColorInterpolator': _builtin(
        exposed='MFFloat key; MFColor keyValue',
        ins=_INTERPOLATOR_INS, outs='SFColor value_changed'),
    'Cone': _builtin(fields='SFFloat bottomRadius height; SFBool side bottom'),
    'Coordinate': _builtin(exposed='MFVec3f point'),
    'CoordinateInterpolator': _builtin(
        exposed='MFFloat key; MFVec3f keyValue',
        ins=_INTERPOLATOR_INS, outs='MFVec3f value_changed'),
    'Cylinder': _builtin(fields='SFBool bottom side top; SFFloat height radius'),
    'CylinderSensor': _builtin(
        exposed='SFBool autoOffset enabled; SFFloat diskAngle maxAngle minAngle offset',
        outs='SFBool isActive; SFRotation rotation_changed; SFVec3f trackPoint_changed'),
    'DirectionalLight': _builtin(
        exposed='SFFloat ambientIntensity intensity; SFColor color; '
                'SFVec3f direction; SFBool on'),
    'ElevationGrid': _builtin(
        exposed='SFNode color normal texCoord',
        fields='MFFloat height; SFBool ccw colorPerVertex normalPerVertex solid; '
               'SFFloat creaseAngle xSpacing zSpacing; SFInt32 xDimension zDimension',
        ins='MFFloat set_height'),
    'Extrusion': _builtin(
        fields='SFBool beginCap ccw convex endCap solid; SFFloat creaseAngle; '
               'MFVec2f crossSection scale; MFRotation orientation; MFVec3f spine',
        ins='MFVec2f set_crossSection set_scale; MFRotation set_orientation; '
            'MFVec3f set_spine'),
    'Fog': _builtin(
        exposed='SFColor color; SFString fogType; SFFloat visibilityRange',
        ins=_BINDABLE_INS, outs='SFBool isBound'),
    'FontStyle': _builtin(
        fields='MFString family justify; SFBool horizontal leftToRight topToBottom; '
               'SFString language style; SFFloat size spacing'),
    'Group': _builtin(exposed='MFNode children', fields=_BBOX, ins=_GROUPING_INS),
    'ImageTexture': _builtin(exposed='MFString url', fields='SFBool repeatS repeatT'),
    'IndexedFaceSet': _builtin(
        exposed='SFNode color coord normal texCoord',
        fields='SFBool ccw colorPerVertex convex normalPerVertex solid; '
               'MFInt32 colorIndex coordIndex normalIndex texCoordIndex; '
               'SFFloat creaseAngle',
        ins='MFInt32 set_colorIndex set_coordIndex set_normalIndex set_texCoordIndex'),
    'IndexedLineSet': _builtin(
        exposed='SFNode color coord',
        fields='MFInt32 colorIndex coordIndex; SFBool colorPerVertex',
        ins='MFInt32 set_colorIndex set_coordIndex'),
    'Inline': _builtin(exposed='MFString url', fields=_BBOX),
    'LOD': _builtin(exposed='MFNode level', fields='SFVec3f center; MFFloat range'),
    'Material': _builtin(
        exposed='SFFloat ambientIntensity shininess transparency; '
                'SFColor diffuseColor emissiveColor specularColor'),
    'MovieTexture': _builtin(
        exposed='SFBool loop; SFFloat speed; SFTime startTime stopTime; MFString url',
        fields='SFBool repeatS repeatT',
        outs='SFTime duration_changed; SFBool isActive'),
    'NavigationInfo': _builtin(
        exposed='MFFloat avatarSize; SFBool headlight; SFFloat speed visibilityLimit; '
                'MFString type',
        ins=_BINDABLE_INS, outs='SFBool isBound'),
    'Normal': _builtin(exposed='MFVec3f vector'),
    'NormalInterpolator': _builtin(
        exposed='MFFloat key; MFVec3f keyValue',
        ins=_INTERPOLATOR_INS, outs='MFVec3f value_changed'),
    'OrientationInterpolator': _builtin(
        exposed='MFFloat key; MFRotation keyValue',
        ins=_INTERPOLATOR_INS, outs='SFRotation value_changed'),
    'PixelTexture': _builtin(exposed='SFImage image', fields='SFBool repeatS repeatT'),
    'PlaneSensor': _builtin(
        exposed='SFBool autoOffset enabled; SFVec2f maxPosition minPosition; SFVec3f offset',
        outs='SFBool isActive; SFVec3f trackPoint_changed translation_changed'),
    'PointLight': _builtin(
        exposed='SFFloat ambientIntensity intensity radius; SFVec3f attenuation location; '
                'SFColor color; SFBool on'),
    'PointSet': _builtin(exposed='SFNode color coord'),
    'PositionInterpolator': _builtin(
        exposed='MFFloat key; MFVec3f keyValue',
        ins=_INTERPOLATOR_INS, outs='SFVec3f value_changed'),
    'ProximitySensor': _builtin(
        exposed='SFVec3f center size; SFBool enabled',
        outs='SFBool isActive; SFVec3f position_changed; '
             'SFRotation orientation_changed; SFTime enterTime exitTime'),
    'ScalarInterpolator': _builtin(
        exposed='MFFloat key keyValue',
        ins=_INTERPOLATOR_INS, outs='SFFloat value_changed'),
    'Script': _builtin(exposed='MFString url', fields='SFBool directOutput mustEvaluate'),
    'Shape': _builtin(exposed='SFNode appearance geometry'),
    'Sound': _builtin(
        exposed='SFVec3f direction location; '
                'SFFloat intensity maxBack maxFront minBack minFront priority; SFNode source',
        fields='SFBool spatialize'),
    'Sphere': _builtin(fields='SFFloat radius'),
    'SphereSensor': _builtin(
        exposed='SFBool autoOffset enabled; SFRotation offset',
        outs='SFBool isActive; SFRotation rotation_changed; SFVec3f trackPoint_changed'),
    'SpotLight': _builtin(
        exposed='SFFloat ambientIntensity beamWidth cutOffAngle intensity radius; '
                'SFVec3f attenuation direction location; SFColor color; SFBool on'),
    'Switch': _builtin(exposed='MFNode choice; SFInt32 whichChoice'),
    'Text': _builtin(exposed='MFString string; SFNode fontStyle; MFFloat length; '
                              'SFFloat maxExtent'),
    'TextureCoordinate': _builtin(exposed='MFVec2f point'),
    'TextureTransform': _builtin(exposed='SFVec2f center scale translation; SFFloat rotation'),
    'TimeSensor': _builtin(
        exposed='SFTime cycleInterval startTime stopTime; SFBool enabled loop',
        outs='SFTime cycleTime time; SFFloat fraction_changed; SFBool isActive'),
    'TouchSensor': _builtin(
        exposed='SFBool enabled',
        outs='SFVec3f hitNormal_changed hitPoint_changed; SFVec2f hitTexCoord_changed; '
             'SFBool isActive isOver; SFTime touchTime'),
    'Transform': _builtin(
        exposed='SFVec3f center scale translation; MFNode children; '
                'SFRotation rotation scaleOrientation',
        fields=_BBOX, ins=_GROUPING_INS),
    'Viewpoint': _builtin(
        exposed='SFFloat fieldOfView; SFBool jump; SFRotation orientation; SFVec3f position',
        fields='SFString description',
        ins=_BINDABLE_INS, outs='SFTime bindTime; SFBool isBound'),
    'VisibilitySensor': _builtin(
        exposed='SFVec3f center size; SFBool enabled',
        outs='SFTime enterTime exitTime; SFBool isActive'),
    'WorldInfo': _builtin(fields='MFString info; SFString title'),
}
