#!/usr/bin/python
from flashhypo.utils import get_config, load_detector_config
from flashhypo.algorithms import FlashHypothesisCreator
from flashhypo.datatypes import Trajectory
from photonlib import PhotonLib, MultiLib
import yaml
import fire

def main(track,
    dedx=None,
    cfg_file: str=None,
    cfg_keyword: str='flashhypo',
    plib_file: str='',
    mlib_file: str='',
    x_offset: float=None):
    '''
    Print the prompt/late/total flash hypothesis of a trajectory.

    track: list of 3D points, e.g. "[[0,0,0],[0,0,10]]"
    dedx: dE/dx per point or per segment in MeV/cm (default: MIP dE/dx)
    '''

    if cfg_file is None:
        cfg_file = get_config(cfg_keyword)

    with open(cfg_file,'r') as f:
        cfg = yaml.safe_load(f)
    det_cfg = load_detector_config(cfg)

    if plib_file:
        cfg['photonlib']=dict(filepath=plib_file)
    if mlib_file:
        cfg['multilib']=dict(filepath=mlib_file)
    if cfg.get('photonlib',dict()).get('filepath') is None and cfg.get('multilib',dict()).get('filepath') is None:
        raise RuntimeError('Must specify the photonlib or multilib filepath using a flag --plib_file or --mlib_file.')

    if cfg.get('multilib',dict()).get('filepath'):
        plib = MultiLib.load(cfg)
    else:
        plib = PhotonLib.load(cfg)

    creator = FlashHypothesisCreator(cfg, det_cfg, plib)
    fhc = creator.create(Trajectory(track), dedx, x_offset=x_offset)

    print(f'Trajectory length {Trajectory(track).length():.2f} cm, {len(fhc)} optical detectors')
    print(f'  prompt PE: {fhc.prompt.sum():.4f}')
    print(f'  late   PE: {fhc.late.sum():.4f}')
    print(f'  total  PE: {fhc.total.sum():.4f}')

if __name__ == '__main__':
    fire.Fire(main)
